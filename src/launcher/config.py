"""Launcher configuration using pydantic-settings.

This module defines the LauncherSettings class. Every field has a
hardcoded default matching the Fedora stable-diffusion-webui setup, and
any field can be overridden with an environment variable carrying the
LAUNCHER_ prefix. Settings are frozen once built and are passed
explicitly to the provisioning plan and the handoff.
"""

import os
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Compatible version of python (must be <= 3.10)
DEFAULT_COMPAT_PYTHON = "python3.10"
DEFAULT_REPO_URL = "https://github.com/AUTOMATIC1111/stable-diffusion-webui.git"
DEFAULT_REPO_TITLE = "AUTOMATIC1111's stable-diffusion-webui"
DEFAULT_LOCAL_NAME = "stable-diffusion-webui"
DEFAULT_INSTALL_HINT = "sudo dnf install {tool}"


def _require_plain_name(name: str, field_name: str) -> str:
    """Reject names that would resolve outside base_dir."""
    separators = [sep for sep in (os.sep, os.altsep, "/") if sep]
    if name in (".", "..") or any(sep in name for sep in separators):
        raise ValueError(
            f"{field_name} must be a plain name inside base_dir, got {name!r}"
        )
    return name


class LauncherSettings(BaseSettings):
    """Launcher configuration from defaults and environment variables.

    All environment variables are prefixed with LAUNCHER_ (e.g.,
    LAUNCHER_COMPAT_PYTHON). List and mapping fields are read as JSON.
    """

    model_config = SettingsConfigDict(
        env_prefix="LAUNCHER_",
        case_sensitive=False,
        frozen=True,
    )

    # -------------------------------------------------------------------------
    # Interpreter
    # -------------------------------------------------------------------------
    # Interpreter used to create the virtual environment
    compat_python: str = DEFAULT_COMPAT_PYTHON

    # -------------------------------------------------------------------------
    # Application repository
    # -------------------------------------------------------------------------
    repo_url: str = DEFAULT_REPO_URL

    # Human readable name used in log messages
    repo_title: str = DEFAULT_REPO_TITLE

    # Directory name of the clone, relative to base_dir
    local_name: str = DEFAULT_LOCAL_NAME

    # Script inside the clone that receives control after setup
    launch_script: str = "webui.sh"

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------
    # Directory that the clone and the environment are created in
    base_dir: Path = Field(default_factory=Path.cwd)

    # Directory name of the virtual environment; derived from
    # compat_python when unset
    venv_name: Optional[str] = Field(default=None, validate_default=True)

    # -------------------------------------------------------------------------
    # Provisioning
    # -------------------------------------------------------------------------
    # Commands that must be on PATH; compat_python is always required too
    required_tools: List[str] = Field(default_factory=lambda: ["wget", "git"])

    # Install suggestion shown for a missing tool, formatted with {tool}
    install_hint: str = DEFAULT_INSTALL_HINT

    # Extra files to fetch into base_dir, local file name -> URL
    downloads: Dict[str, str] = Field(default_factory=dict)

    # Upper bound for each external command (download, clone, venv)
    command_timeout_seconds: int = 1800

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("compat_python", "repo_title", "local_name", "launch_script")
    @classmethod
    def validate_not_empty(cls, v: str, info: ValidationInfo) -> str:
        """Validate that required names are not empty."""
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty")
        return v

    @field_validator("repo_url")
    @classmethod
    def validate_repo_url(cls, v: str) -> str:
        """Validate that the repository URL looks like a Git remote."""
        if not v or not v.strip():
            raise ValueError("repo_url cannot be empty")
        if not v.startswith(("http://", "https://", "git@", "ssh://", "file://")):
            raise ValueError(
                "repo_url must be an http(s), ssh, git@ or file:// URL"
            )
        return v

    @field_validator("base_dir")
    @classmethod
    def validate_base_dir(cls, v: Path) -> Path:
        """Validate that the base directory is an absolute path."""
        if not v.is_absolute():
            raise ValueError("base_dir must be an absolute path")
        return v

    @field_validator("venv_name")
    @classmethod
    def derive_venv_name(cls, v: Optional[str], info: ValidationInfo) -> str:
        """Default the environment name to venv-<interpreter>."""
        if v is not None and v.strip():
            return _require_plain_name(v, "venv_name")
        compat_python = info.data.get("compat_python", DEFAULT_COMPAT_PYTHON)
        return f"venv-{Path(compat_python).name.lower()}"

    @field_validator("local_name")
    @classmethod
    def validate_local_name(cls, v: str) -> str:
        """Validate that the clone directory stays inside base_dir."""
        return _require_plain_name(v, "local_name")

    @field_validator("downloads")
    @classmethod
    def validate_downloads(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Validate download file names and URLs."""
        for local_name, url in v.items():
            _require_plain_name(local_name, "downloads file name")
            if not url.startswith(("http://", "https://", "ftp://")):
                raise ValueError(
                    f"download URL for {local_name} must be http(s) or ftp"
                )
        return v

    @field_validator("install_hint")
    @classmethod
    def validate_install_hint(cls, v: str) -> str:
        """Validate that the install hint names the missing tool."""
        if "{tool}" not in v:
            raise ValueError("install_hint must contain the {tool} placeholder")
        return v

    @field_validator("command_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate that the command timeout is positive."""
        if v < 1:
            raise ValueError("command_timeout_seconds must be at least 1")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log_level: {v}")
        return level

    # -------------------------------------------------------------------------
    # Derived paths
    # -------------------------------------------------------------------------
    @property
    def repo_dir(self) -> Path:
        return self.base_dir / self.local_name

    @property
    def venv_dir(self) -> Path:
        return self.base_dir / self.venv_name

    @property
    def venv_bin_dir(self) -> Path:
        return self.venv_dir / "bin"

    @property
    def venv_python(self) -> Path:
        return self.venv_bin_dir / "python"

    @property
    def launch_script_path(self) -> Path:
        return self.repo_dir / self.launch_script

    @property
    def tools(self) -> List[str]:
        """Required commands in check order, compat_python last."""
        tools: List[str] = []
        for tool in [*self.required_tools, self.compat_python]:
            if tool not in tools:
                tools.append(tool)
        return tools

    def install_hint_for(self, tool: str) -> str:
        return self.install_hint.format(tool=tool)


def get_settings() -> LauncherSettings:
    """Create and return a LauncherSettings instance.

    Returns:
        LauncherSettings: Configured settings instance.

    Raises:
        pydantic.ValidationError: If an override is invalid.
    """
    return LauncherSettings()
