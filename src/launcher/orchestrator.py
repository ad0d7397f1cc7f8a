"""Launch orchestrator driving the provisioning plan.

Builds the fixed sequence of resource checks from the settings and runs
them one after another: tool checks, downloads, repository clone, then
virtual environment. The first failure stops the run; nothing after it
is attempted.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from launcher.config import LauncherSettings
from launcher.provisioner import (
    Provisioner,
    ProvisionResult,
    ResourceCheck,
    clone_check,
    command_check,
    download_check,
    venv_check,
)

logger = structlog.get_logger(__name__)


@dataclass
class LaunchReport:
    """Results of a provisioning run, in execution order.

    Attributes:
        results: One result per check that ran. Checks after a failure
            are not run and have no result.
    """

    results: List[ProvisionResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(not result.failed for result in self.results)

    @property
    def failure(self) -> Optional[ProvisionResult]:
        for result in self.results:
            if result.failed:
                return result
        return None


def build_plan(settings: LauncherSettings) -> List[ResourceCheck]:
    """Build the ordered list of checks for the given settings.

    Args:
        settings: Validated launcher settings.

    Returns:
        Tool checks first, then downloads, the clone and the environment.
    """
    timeout = settings.command_timeout_seconds
    plan: List[ResourceCheck] = [
        command_check(tool, settings.install_hint_for(tool))
        for tool in settings.tools
    ]
    for local_name, url in settings.downloads.items():
        plan.append(
            download_check(settings.base_dir / local_name, url, timeout)
        )
    plan.append(
        clone_check(
            settings.repo_url,
            settings.repo_title,
            settings.repo_dir,
            timeout,
        )
    )
    plan.append(venv_check(settings.venv_dir, settings.compat_python, timeout))
    return plan


class LaunchOrchestrator:
    """Runs a provisioning plan with fail-fast semantics.

    Attributes:
        provisioner: Provisioner used for every check.
    """

    def __init__(self, provisioner: Optional[Provisioner] = None):
        self.provisioner = provisioner or Provisioner()

    def run(self, plan: List[ResourceCheck]) -> LaunchReport:
        """Ensure every check in order, stopping at the first failure.

        Args:
            plan: Ordered resource checks.

        Returns:
            LaunchReport with a result for each check that ran.
        """
        report = LaunchReport()
        for check in plan:
            result = self.provisioner.ensure(check)
            report.results.append(result)
            if result.failed:
                logger.debug(
                    "Stopping after failed check",
                    check=check.name,
                    skipped=len(plan) - len(report.results),
                )
                break
        return report
