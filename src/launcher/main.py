"""Command-line entry point for the launcher.

Takes no arguments: behaviour is fully determined by LauncherSettings.
This module owns the only error handler that turns failures into a
process exit status.

Exit codes:
- 0: every resource is present and the launcher script took over
- 1: a tool is missing, a creation step failed, or the handoff failed
- 2: unexpected command-line arguments
- 130: interrupted
"""

import argparse
from typing import List, Optional

import structlog
from pydantic import ValidationError

from launcher import __version__
from launcher.config import LauncherSettings, get_settings
from launcher.errors import LauncherError
from launcher.handoff import LauncherHandoff
from launcher.log_config import configure_logging
from launcher.orchestrator import LaunchOrchestrator, build_plan

logger = structlog.get_logger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def _parse_args(argv: Optional[List[str]]) -> None:
    parser = argparse.ArgumentParser(
        prog="fedora-launcher",
        description=(
            "Clone the application, create its virtual environment and "
            "launch it. Configure with LAUNCHER_* environment variables."
        ),
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.parse_args(argv)


def _log_configuration(settings: LauncherSettings) -> None:
    logger.debug(
        "Launcher configuration",
        compat_python=settings.compat_python,
        repo_url=settings.repo_url,
        repo_dir=str(settings.repo_dir),
        venv_dir=str(settings.venv_dir),
        tools=settings.tools,
        downloads=sorted(settings.downloads),
        launch_script=settings.launch_script,
    )


def _report_error(exc: LauncherError) -> None:
    logger.error(str(exc))
    if exc.remediation:
        logger.info(f"you can try: {exc.remediation}")


def run(
    settings: LauncherSettings,
    orchestrator: Optional[LaunchOrchestrator] = None,
    handoff: Optional[LauncherHandoff] = None,
) -> int:
    """Provision every resource, then hand off to the launcher script.

    Args:
        settings: Validated launcher settings.
        orchestrator: Runs the provisioning plan.
        handoff: Activates the environment and execs the script.

    Returns:
        Process exit status.
    """
    orchestrator = orchestrator or LaunchOrchestrator()
    handoff = handoff or LauncherHandoff()

    _log_configuration(settings)
    try:
        report = orchestrator.run(build_plan(settings))
        failure = report.failure
        if failure is not None and failure.error is not None:
            raise failure.error
        handoff.launch(settings)
    except LauncherError as exc:
        _report_error(exc)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("interrupted, re-run to resume setup")
        return EXIT_INTERRUPTED
    return EXIT_SUCCESS


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the fedora-launcher console script."""
    _parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as exc:
        configure_logging()
        logger.error("Invalid launcher configuration", error=str(exc))
        return EXIT_FAILURE

    configure_logging(settings.log_level, settings.log_format)
    return run(settings)


if __name__ == "__main__":
    raise SystemExit(main())
