"""Idempotent provisioner.

Implements the "ensure present" contract: evaluate a side-effect free
existence check, run the creation action only when the target is
absent, and always verify the target exists afterwards. Failures are
returned as results, never raised, so the caller decides when the
process ends.
"""

from typing import List, Optional

import structlog

from launcher.errors import ProvisionError
from launcher.provisioner.models import (
    TERMINAL_OUTCOMES,
    CheckState,
    ProvisionResult,
    ResourceCheck,
    is_valid_transition,
)

logger = structlog.get_logger(__name__)


class InvalidTransitionError(Exception):
    """Raised when a target is moved along a transition that is not allowed.

    Attributes:
        from_state: The current state.
        to_state: The attempted target state.
    """

    def __init__(self, from_state: CheckState, to_state: CheckState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid transition from {from_state.value} to {to_state.value}"
        )


class _StateTracker:
    """Records the states of one target and rejects invalid transitions."""

    def __init__(self) -> None:
        self.history: List[CheckState] = [CheckState.UNCHECKED]

    @property
    def current(self) -> CheckState:
        return self.history[-1]

    def transition(self, to_state: CheckState) -> None:
        if not is_valid_transition(self.current, to_state):
            raise InvalidTransitionError(self.current, to_state)
        self.history.append(to_state)


class Provisioner:
    """Ensures that resources are present, creating them only when absent.

    The provisioner holds no state between calls; every ensure call
    re-evaluates existence from scratch.
    """

    def ensure(self, check: ResourceCheck) -> ProvisionResult:
        """Make sure the check's target is present.

        Args:
            check: Resource check with existence predicate and creation
                action.

        Returns:
            ProvisionResult with outcome ALREADY_PRESENT, CREATED or
            FAILED. A FAILED result carries the ProvisionError.

        Raises:
            ValueError: If the check's target is empty.
        """
        if not check.target:
            raise ValueError(f"{check.name}: target cannot be empty")

        tracker = _StateTracker()
        log = logger.bind(check=check.name, target=check.target)

        try:
            present = check.exists(check.target)
        except OSError as exc:
            return self._fail(check, tracker, check.failure(check.target, str(exc)))

        if present:
            tracker.transition(CheckState.PRESENT)
            log.info(check.present_message or f"{check.name} already satisfied")
            return self._result(check, tracker)

        tracker.transition(CheckState.ABSENT)
        log.info(check.pending_message or f"{check.name} in progress")

        error = self._run_create(check) or self._verify_created(check)
        if error is not None:
            return self._fail(check, tracker, error)

        tracker.transition(CheckState.CREATED)
        log.info(check.created_message or f"{check.name} done")
        return self._result(check, tracker)

    def _run_create(self, check: ResourceCheck) -> Optional[ProvisionError]:
        """Run the creation action and capture its failure, if any."""
        try:
            check.create(check.target)
        except ProvisionError as exc:
            return exc
        except OSError as exc:
            return check.failure(check.target, str(exc))
        return None

    def _verify_created(self, check: ResourceCheck) -> Optional[ProvisionError]:
        """Re-run the existence check after a creation action."""
        try:
            if check.exists(check.target):
                return None
        except OSError as exc:
            return check.failure(check.target, str(exc))
        return check.failure(
            check.target,
            f"{check.target} still missing after {check.name}",
        )

    def _fail(
        self,
        check: ResourceCheck,
        tracker: _StateTracker,
        error: ProvisionError,
    ) -> ProvisionResult:
        # Reported to the user by the top-level handler.
        tracker.transition(CheckState.FAILED)
        logger.debug(
            f"{check.name} failed", target=check.target, reason=str(error)
        )
        return self._result(check, tracker, error)

    def _result(
        self,
        check: ResourceCheck,
        tracker: _StateTracker,
        error: Optional[ProvisionError] = None,
    ) -> ProvisionResult:
        return ProvisionResult(
            name=check.name,
            target=check.target,
            outcome=TERMINAL_OUTCOMES[tracker.current],
            error=error,
            history=list(tracker.history),
        )
