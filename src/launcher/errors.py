"""Errors raised while provisioning and launching.

Every error is fatal to the run: nothing is retried and no partial
success is reported. Each error carries a remediation hint that the
top-level handler shows to the user before exiting with status 1.
"""

from typing import Optional


class LauncherError(Exception):
    """Base error for this package.

    Attributes:
        remediation: Optional hint telling the user how to fix the problem.
    """

    def __init__(self, message: str, remediation: Optional[str] = None):
        self.remediation = remediation
        super().__init__(message)


class ProvisionError(LauncherError):
    """Raised when a resource cannot be made present."""

    def __init__(
        self,
        target: str,
        message: str,
        remediation: Optional[str] = None,
    ):
        self.target = target
        super().__init__(message, remediation)


class MissingToolError(ProvisionError):
    """Raised when a required command is not available on PATH."""

    def __init__(self, tool: str, install_hint: Optional[str] = None):
        super().__init__(
            tool,
            f"{tool} is not available!",
            remediation=install_hint,
        )


class DownloadFailedError(ProvisionError):
    """Raised when a remote file cannot be downloaded."""

    def __init__(self, local_file: str, url: str, message: str):
        self.url = url
        super().__init__(
            local_file,
            f"can not download {local_file} from {url}: {message}",
            remediation="check your network connection and the download URL",
        )


class CloneFailedError(ProvisionError):
    """Raised when a Git repository clone fails."""

    def __init__(self, local_dir: str, repo_url: str, message: str):
        self.repo_url = repo_url
        super().__init__(
            local_dir,
            f"Failed to clone {repo_url}: {message}",
            remediation=(
                f"remove any partial checkout at {local_dir} and re-run"
            ),
        )


class EnvCreationFailedError(ProvisionError):
    """Raised when the virtual environment cannot be created."""

    def __init__(self, venv_dir: str, python: str, message: str):
        self.python = python
        super().__init__(
            venv_dir,
            f"Failed to create virtual environment with {python}: {message}",
            remediation=(
                f"make sure '{python} -m venv' works, remove {venv_dir} "
                "and re-run"
            ),
        )


class LaunchError(LauncherError):
    """Raised when control cannot be handed to the downstream script."""
