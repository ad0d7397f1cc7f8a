"""Provisioning models.

This module defines the data models for a single "ensure present" step:
- CheckState: Enum of the states a target moves through
- Outcome: The externally visible result of an ensure call
- ResourceCheck: A named existence predicate plus a creation action
- ProvisionResult: Outcome, failure reason and state history of a check
- VALID_TRANSITIONS: Map defining allowed state transitions

Nothing here is persisted; a target's state lives only for the duration
of one ensure call.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from launcher.errors import ProvisionError


class CheckState(str, Enum):
    """States of a target during an ensure call.

    State Flow:
        unchecked → present
        unchecked → absent → created | failed
        unchecked → failed (existence could not be evaluated)

    Attributes:
        UNCHECKED: Existence not evaluated yet.
        PRESENT: Target existed before any action; nothing was done.
        ABSENT: Target missing; the creation action is about to run.
        CREATED: Creation action ran and the target now exists.
        FAILED: Creation action failed or the target is still missing.
    """

    UNCHECKED = "unchecked"
    PRESENT = "present"
    ABSENT = "absent"
    CREATED = "created"
    FAILED = "failed"


class Outcome(str, Enum):
    """Result reported by the provisioner for one target."""

    ALREADY_PRESENT = "already_present"
    CREATED = "created"
    FAILED = "failed"


# PRESENT, CREATED and FAILED are terminal; there is no way back.
VALID_TRANSITIONS: Dict[CheckState, List[CheckState]] = {
    CheckState.UNCHECKED: [
        CheckState.PRESENT,
        CheckState.ABSENT,
        CheckState.FAILED,
    ],
    CheckState.ABSENT: [CheckState.CREATED, CheckState.FAILED],
    CheckState.PRESENT: [],
    CheckState.CREATED: [],
    CheckState.FAILED: [],
}

TERMINAL_OUTCOMES: Dict[CheckState, Outcome] = {
    CheckState.PRESENT: Outcome.ALREADY_PRESENT,
    CheckState.CREATED: Outcome.CREATED,
    CheckState.FAILED: Outcome.FAILED,
}


def is_valid_transition(from_state: CheckState, to_state: CheckState) -> bool:
    """Check if a state transition is valid.

    Example:
        >>> is_valid_transition(CheckState.UNCHECKED, CheckState.ABSENT)
        True
        >>> is_valid_transition(CheckState.PRESENT, CheckState.ABSENT)
        False
    """
    return to_state in VALID_TRANSITIONS.get(from_state, [])


def is_terminal_state(state: CheckState) -> bool:
    """Check if a state has no outgoing transitions."""
    return len(VALID_TRANSITIONS.get(state, [])) == 0


@dataclass(frozen=True)
class ResourceCheck:
    """A named resource that must be present.

    Attributes:
        name: Short description used in log messages (e.g., "git clone").
        target: Path or command name whose presence is ensured.
        exists: Side-effect free predicate evaluated against target.
        create: Action that makes target present; raises ProvisionError
            on failure. Only called when exists returned False.
        failure: Builds the error for a create that hit an OSError or
            left the target missing, from (target, message).
        present_message: Notice logged when the target already exists.
        pending_message: Notice logged before the creation action runs.
        created_message: Notice logged after a verified creation.
    """

    name: str
    target: str
    exists: Callable[[str], bool]
    create: Callable[[str], None]
    failure: Callable[[str, str], ProvisionError] = ProvisionError
    present_message: Optional[str] = None
    pending_message: Optional[str] = None
    created_message: Optional[str] = None


@dataclass
class ProvisionResult:
    """Result of ensuring a single resource.

    Attributes:
        name: Name of the resource check.
        target: Target that was ensured.
        outcome: ALREADY_PRESENT, CREATED or FAILED.
        error: The failure, only set when outcome is FAILED.
        history: States the target moved through, in order.
    """

    name: str
    target: str
    outcome: Outcome
    error: Optional[ProvisionError] = None
    history: List[CheckState] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.FAILED

    @property
    def reason(self) -> Optional[str]:
        """Human readable failure reason, None unless FAILED."""
        if self.error is None:
            return None
        return str(self.error)
