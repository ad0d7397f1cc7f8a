"""Idempotent resource provisioning.

A resource check pairs a side-effect free existence predicate with a
creation action. The provisioner runs the action only for absent
targets and verifies the target afterwards, so running it twice has no
additional effect.
"""

from launcher.provisioner.core import InvalidTransitionError, Provisioner
from launcher.provisioner.models import (
    VALID_TRANSITIONS,
    CheckState,
    Outcome,
    ProvisionResult,
    ResourceCheck,
    is_terminal_state,
    is_valid_transition,
)
from launcher.provisioner.resources import (
    clone_check,
    command_check,
    download_check,
    venv_check,
)

__all__ = [
    # Models
    "CheckState",
    "Outcome",
    "ProvisionResult",
    "ResourceCheck",
    "VALID_TRANSITIONS",
    "is_terminal_state",
    "is_valid_transition",
    # Provisioner
    "InvalidTransitionError",
    "Provisioner",
    # Resource checks
    "clone_check",
    "command_check",
    "download_check",
    "venv_check",
]
