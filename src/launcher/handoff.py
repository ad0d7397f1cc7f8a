"""Virtual environment activation and handoff to the downstream script.

Reproduces what sourcing bin/activate does for a child process, then
replaces the current process with the application's launcher script,
running from inside the cloned repository.
"""

import os
from pathlib import Path
from typing import Callable, Dict, List, Mapping, NoReturn, Optional

import structlog

from launcher.config import LauncherSettings
from launcher.errors import LaunchError

logger = structlog.get_logger(__name__)

ExecFunction = Callable[[str, List[str], Dict[str, str]], NoReturn]


def activated_environment(
    venv_dir: Path,
    base_env: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Build the environment of a shell that sourced venv_dir/bin/activate.

    Args:
        venv_dir: Root of the virtual environment.
        base_env: Environment to start from; defaults to os.environ.

    Returns:
        New environment mapping with VIRTUAL_ENV set, the environment's
        bin directory first on PATH, PYTHONHOME removed and python_cmd
        pointing at the environment's interpreter.
    """
    env = dict(os.environ if base_env is None else base_env)
    bin_dir = venv_dir / "bin"

    env.pop("PYTHONHOME", None)
    env["VIRTUAL_ENV"] = str(venv_dir)
    path = env.get("PATH", "")
    env["PATH"] = f"{bin_dir}{os.pathsep}{path}" if path else str(bin_dir)
    env["python_cmd"] = str(bin_dir / "python")
    return env


class LauncherHandoff:
    """Hands control to the downstream launcher script.

    Attributes:
        exec_function: Replaces the current process; os.execve unless a
            test injects something else.
        chdir_function: Changes the working directory before exec.
    """

    def __init__(
        self,
        exec_function: Optional[ExecFunction] = None,
        chdir_function: Optional[Callable[[Path], None]] = None,
    ):
        self.exec_function = exec_function or os.execve
        self.chdir_function = chdir_function or os.chdir

    def launch(self, settings: LauncherSettings) -> NoReturn:
        """Activate the environment and exec the launcher script.

        Args:
            settings: Settings naming the environment and the script.

        Raises:
            LaunchError: If the script is missing or cannot be executed.
        """
        script = settings.launch_script_path
        if not script.is_file():
            raise LaunchError(
                f"{settings.launch_script} not found in {settings.repo_dir}",
                remediation=(
                    f"remove {settings.repo_dir} and re-run to clone it again"
                ),
            )

        logger.info(
            f"activating virtual environment with {settings.compat_python}",
            venv=str(settings.venv_dir),
        )
        env = activated_environment(settings.venv_dir)

        logger.info(f"launching {settings.launch_script}", cwd=str(settings.repo_dir))
        try:
            self.chdir_function(settings.repo_dir)
            self.exec_function(str(script), [str(script)], env)
        except OSError as exc:
            raise LaunchError(
                f"Failed to execute {script}: {exc}",
                remediation=f"make sure {script} is executable",
            ) from exc
        raise LaunchError(f"{script} returned control to the launcher")
