"""Unit tests for the idempotent provisioner.

Tests the ensure contract: existence evaluated first, creation only for
absent targets, post-creation verification, and failure reporting.
"""
from pathlib import Path
from unittest.mock import Mock

import pytest

from launcher.errors import CloneFailedError, ProvisionError
from launcher.provisioner import (
    CheckState,
    InvalidTransitionError,
    Outcome,
    Provisioner,
    ResourceCheck,
)
from launcher.provisioner.core import _StateTracker


@pytest.fixture
def provisioner():
    return Provisioner()


def directory_check(target: Path, create=None) -> ResourceCheck:
    def mkdir(path: str) -> None:
        Path(path).mkdir()

    return ResourceCheck(
        name="test directory",
        target=str(target),
        exists=lambda path: Path(path).is_dir(),
        create=create or mkdir,
    )


class TestAlreadyPresent:

    def test_existing_target_is_not_created(self, provisioner, tmp_path):
        create = Mock()
        check = directory_check(tmp_path, create=create)
        result = provisioner.ensure(check)
        assert result.outcome == Outcome.ALREADY_PRESENT
        create.assert_not_called()

    def test_history_goes_straight_to_present(self, provisioner, tmp_path):
        result = provisioner.ensure(directory_check(tmp_path))
        assert result.history == [CheckState.UNCHECKED, CheckState.PRESENT]
        assert result.error is None
        assert result.reason is None


class TestCreated:

    def test_absent_target_is_created(self, provisioner, tmp_path):
        target = tmp_path / "repo"
        result = provisioner.ensure(directory_check(target))
        assert result.outcome == Outcome.CREATED
        assert target.is_dir()

    def test_history_passes_through_absent(self, provisioner, tmp_path):
        result = provisioner.ensure(directory_check(tmp_path / "repo"))
        assert result.history == [
            CheckState.UNCHECKED, CheckState.ABSENT, CheckState.CREATED]

    def test_second_call_reports_already_present(self, provisioner, tmp_path):
        create = Mock(side_effect=lambda path: Path(path).mkdir())
        check = directory_check(tmp_path / "repo", create=create)
        first = provisioner.ensure(check)
        second = provisioner.ensure(check)
        assert first.outcome == Outcome.CREATED
        assert second.outcome == Outcome.ALREADY_PRESENT
        assert create.call_count == 1

    def test_exists_is_evaluated_again_after_create(self, provisioner):
        exists = Mock(side_effect=[False, True])
        check = ResourceCheck(
            name="x", target="x", exists=exists, create=Mock())
        result = provisioner.ensure(check)
        assert result.outcome == Outcome.CREATED
        assert exists.call_count == 2


class TestFailed:

    def test_create_error_is_returned(self, provisioner, tmp_path):
        error = CloneFailedError(str(tmp_path / "repo"), "https://x/y.git", "boom")
        check = directory_check(tmp_path / "repo", create=Mock(side_effect=error))
        result = provisioner.ensure(check)
        assert result.outcome == Outcome.FAILED
        assert result.error is error
        assert "boom" in result.reason
        assert result.history[-1] == CheckState.FAILED

    def test_missing_target_after_create_fails(self, provisioner, tmp_path):
        target = tmp_path / "repo"
        check = directory_check(target, create=Mock())
        result = provisioner.ensure(check)
        assert result.outcome == Outcome.FAILED
        assert isinstance(result.error, ProvisionError)
        assert "still missing" in result.reason

    def test_missing_target_uses_check_failure_factory(self, provisioner):
        failure = Mock(return_value=ProvisionError("x", "custom"))
        check = ResourceCheck(
            name="x", target="x", exists=lambda _: False,
            create=Mock(), failure=failure)
        result = provisioner.ensure(check)
        failure.assert_called_once()
        assert result.reason == "custom"

    def test_os_error_is_wrapped(self, provisioner):
        check = ResourceCheck(
            name="x", target="x", exists=lambda _: False,
            create=Mock(side_effect=PermissionError("denied")))
        result = provisioner.ensure(check)
        assert result.outcome == Outcome.FAILED
        assert "denied" in result.reason

    def test_unexpected_errors_propagate(self, provisioner):
        check = ResourceCheck(
            name="x", target="x", exists=lambda _: False,
            create=Mock(side_effect=RuntimeError("bug")))
        with pytest.raises(RuntimeError, match="bug"):
            provisioner.ensure(check)

    def test_unreadable_target_fails_without_create(self, provisioner):
        create = Mock()
        check = ResourceCheck(
            name="x", target="x",
            exists=Mock(side_effect=PermissionError("permission denied")),
            create=create)
        result = provisioner.ensure(check)
        assert result.outcome == Outcome.FAILED
        assert "permission denied" in result.reason
        assert result.history == [CheckState.UNCHECKED, CheckState.FAILED]
        create.assert_not_called()

    def test_unreadable_target_after_create_fails(self, provisioner):
        check = ResourceCheck(
            name="x", target="x",
            exists=Mock(side_effect=[False, PermissionError("permission denied")]),
            create=Mock())
        result = provisioner.ensure(check)
        assert result.outcome == Outcome.FAILED
        assert result.history[-2:] == [CheckState.ABSENT, CheckState.FAILED]

    def test_failed_result_is_not_raised(self, provisioner):
        check = ResourceCheck(
            name="x", target="x", exists=lambda _: False,
            create=Mock(side_effect=ProvisionError("x", "nope")))
        assert provisioner.ensure(check).failed


class TestTargetValidation:

    def test_empty_target_rejected(self, provisioner):
        check = ResourceCheck(
            name="x", target="", exists=Mock(), create=Mock())
        with pytest.raises(ValueError, match="target cannot be empty"):
            provisioner.ensure(check)
        check.exists.assert_not_called()


class TestStateTracker:

    def test_starts_unchecked(self):
        assert _StateTracker().current == CheckState.UNCHECKED

    def test_rejects_skipping_absent(self):
        tracker = _StateTracker()
        with pytest.raises(InvalidTransitionError):
            tracker.transition(CheckState.CREATED)

    def test_rejects_leaving_terminal_state(self):
        tracker = _StateTracker()
        tracker.transition(CheckState.PRESENT)
        with pytest.raises(InvalidTransitionError, match="present to absent"):
            tracker.transition(CheckState.ABSENT)
