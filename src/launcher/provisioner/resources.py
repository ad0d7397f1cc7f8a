"""Concrete resource checks.

Builds ResourceCheck instances for the resources the launcher needs:
- Commands that must already be installed on PATH
- Files downloaded with wget
- Git repositories cloned into a local directory
- Python virtual environments created with a given interpreter

External commands run synchronously and block until they finish or the
timeout expires.
"""

import os
import shutil
import stat
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

import structlog

from launcher.errors import (
    CloneFailedError,
    DownloadFailedError,
    EnvCreationFailedError,
    MissingToolError,
    ProvisionError,
)
from launcher.provisioner.models import ResourceCheck

logger = structlog.get_logger(__name__)

DEFAULT_COMMAND_TIMEOUT_SECONDS = 1800

EXECUTABLE_BY_ALL = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH

PARTIAL_SUFFIX = ".part"


def command_exists(tool: str) -> bool:
    return shutil.which(tool) is not None


def clone_exists(target: str) -> bool:
    """A clone counts only once its .git directory is in place."""
    return (Path(target) / ".git").is_dir()


def venv_exists(target: str) -> bool:
    """An environment counts only once its interpreter is in place."""
    return (Path(target) / "bin" / "python").exists()


def file_exists(target: str) -> bool:
    return Path(target).is_file()


def run_command(
    args: List[str],
    failure: Callable[[str], ProvisionError],
    timeout_seconds: int = DEFAULT_COMMAND_TIMEOUT_SECONDS,
    capture_output: bool = True,
) -> None:
    """Run an external command and raise on any failure.

    Args:
        args: Command line, executable first.
        failure: Builds the error to raise from a failure message.
        timeout_seconds: Time after which the command is killed.
        capture_output: Capture stderr for the error message instead of
            letting the command write to the terminal.

    Raises:
        ProvisionError: Built by failure when the command cannot start,
            times out or exits non-zero.
    """
    logger.debug("Running command", args=args, timeout=timeout_seconds)
    try:
        completed = subprocess.run(
            args,
            stdout=subprocess.PIPE if capture_output else None,
            stderr=subprocess.PIPE if capture_output else None,
            timeout=timeout_seconds,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise failure(f"timed out after {timeout_seconds}s") from exc
    except OSError as exc:
        raise failure(f"failed to execute {args[0]}: {exc}") from exc

    if completed.returncode != 0:
        error_output = ""
        if completed.stderr:
            error_output = completed.stderr.decode(errors="replace").strip()
        raise failure(
            error_output or f"{args[0]} exited with code {completed.returncode}"
        )


def command_check(tool: str, install_hint: Optional[str] = None) -> ResourceCheck:
    """Check that a command is available; there is no way to create it.

    Args:
        tool: Executable name looked up on PATH.
        install_hint: Command suggested to the user when tool is missing.
    """

    def create(target: str) -> None:
        raise MissingToolError(target, install_hint)

    return ResourceCheck(
        name=f"command {tool}",
        target=tool,
        exists=command_exists,
        create=create,
        failure=lambda target, message: MissingToolError(target, install_hint),
        present_message=f"{tool} is installed",
        pending_message=f"looking for {tool}",
    )


def download_check(
    local_file: Path,
    url: str,
    timeout_seconds: int = DEFAULT_COMMAND_TIMEOUT_SECONDS,
) -> ResourceCheck:
    """Download url to local_file with wget when the file is absent.

    The file is fetched under a .part name and only moved into place
    once wget succeeds. A freshly downloaded file is made executable by
    everyone.
    """

    def failure(target: str, message: str) -> ProvisionError:
        return DownloadFailedError(target, url, message)

    def create(target: str) -> None:
        # wget -O leaves an empty file behind on failure
        partial = Path(f"{target}{PARTIAL_SUFFIX}")
        try:
            run_command(
                ["wget", "-q", "--show-progress", "-O", str(partial), url],
                lambda message: failure(target, message),
                timeout_seconds=timeout_seconds,
                capture_output=False,
            )
            partial.chmod(partial.stat().st_mode | EXECUTABLE_BY_ALL)
            os.replace(partial, target)
        finally:
            partial.unlink(missing_ok=True)

    return ResourceCheck(
        name=f"download {local_file.name}",
        target=str(local_file),
        exists=file_exists,
        create=create,
        failure=failure,
        present_message=f"{local_file.name} already downloaded",
        pending_message="downloading",
        created_message=f"{local_file.name} downloaded",
    )


def clone_check(
    repo_url: str,
    repo_title: str,
    local_dir: Path,
    timeout_seconds: int = DEFAULT_COMMAND_TIMEOUT_SECONDS,
) -> ResourceCheck:
    """Clone repo_url into local_dir unless a clone is already there."""

    def failure(target: str, message: str) -> ProvisionError:
        return CloneFailedError(target, repo_url, message)

    def create(target: str) -> None:
        run_command(
            ["git", "clone", repo_url, target],
            lambda message: failure(target, message),
            timeout_seconds=timeout_seconds,
        )

    return ResourceCheck(
        name="git clone",
        target=str(local_dir),
        exists=clone_exists,
        create=create,
        failure=failure,
        present_message=f"{repo_title} repo already cloned",
        pending_message="cloning remote repository",
        created_message=f"{repo_title} repo cloned in: {local_dir}",
    )


def venv_check(
    venv_dir: Path,
    python: str,
    timeout_seconds: int = DEFAULT_COMMAND_TIMEOUT_SECONDS,
) -> ResourceCheck:
    """Create a virtual environment unless its interpreter already exists."""

    def failure(target: str, message: str) -> ProvisionError:
        return EnvCreationFailedError(target, python, message)

    def create(target: str) -> None:
        run_command(
            [python, "-m", "venv", target],
            lambda message: failure(target, message),
            timeout_seconds=timeout_seconds,
        )

    return ResourceCheck(
        name="virtual environment",
        target=str(venv_dir),
        exists=venv_exists,
        create=create,
        failure=failure,
        present_message="virtual environment already exists",
        pending_message="creating virtual environment",
        created_message=f"new virtual environment created: {venv_dir}",
    )
