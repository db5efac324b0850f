"""Tests for data models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from maclean.models import (
    ConfirmationOutcome,
    DeletionResult,
    ErrorRecord,
    PathViolation,
    RunLedger,
    RunOptions,
    StepOutcome,
    StepReport,
    StepStatus,
)


class TestConfirmationOutcome:
    def test_values(self):
        assert ConfirmationOutcome.AUTO_ACCEPTED == "auto"
        assert ConfirmationOutcome.USER_ACCEPTED == "yes"
        assert ConfirmationOutcome.USER_DECLINED == "no"
        assert ConfirmationOutcome.EMPTY_DEFAULTED == "empty"
        assert ConfirmationOutcome.INVALID_DEFAULTED == "invalid"

    def test_only_acceptances_proceed(self):
        accepted = {o for o in ConfirmationOutcome if o.accepted}
        assert accepted == {ConfirmationOutcome.AUTO_ACCEPTED, ConfirmationOutcome.USER_ACCEPTED}


class TestRunOptions:
    def test_defaults(self):
        options = RunOptions()
        assert not options.auto_yes
        assert not options.dry_run
        assert options.docker and options.xcode
        assert options.root == Path.home()

    def test_relative_root_rejected(self):
        with pytest.raises(ValidationError):
            RunOptions(root=Path("relative/dir"))

    def test_tilde_root_expanded(self):
        assert RunOptions(root=Path("~")).root == Path.home()

    def test_frozen(self):
        options = RunOptions()
        with pytest.raises(ValidationError):
            options.dry_run = True


class TestStepOutcome:
    def test_reclaimed_on_success(self):
        assert StepOutcome(bytes_reclaimed=100).reclaimed == 100

    def test_reclaimed_zero_is_known(self):
        assert StepOutcome(bytes_reclaimed=0).reclaimed == 0

    def test_reclaimed_unknown_on_failure(self):
        assert StepOutcome(exit_status=1, bytes_reclaimed=100).reclaimed is None

    def test_reclaimed_unknown_when_absent(self):
        assert StepOutcome().reclaimed is None

    def test_negative_count_is_unknown(self):
        assert StepOutcome(bytes_reclaimed=-5).reclaimed is None

    def test_skipped(self):
        assert StepOutcome(confirmation=ConfirmationOutcome.EMPTY_DEFAULTED).skipped
        assert not StepOutcome().skipped

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            StepOutcome(duration_seconds=-1)


class TestErrorRecord:
    def test_sequence_starts_at_one(self):
        with pytest.raises(ValidationError):
            ErrorRecord(sequence=0, message="x")

    def test_immutable(self):
        record = ErrorRecord(sequence=1, message="x")
        with pytest.raises(ValidationError):
            record.message = "y"


class TestPathViolation:
    def test_message_names_both_paths(self):
        violation = PathViolation(
            requested_path="/home/u/link", resolved_path="/tmp/outside", root="/home/u"
        )
        assert "/home/u/link" in violation.message
        assert "/tmp/outside" in violation.message


class TestDeletionResult:
    def test_ok_without_violation(self):
        assert DeletionResult(bytes_reclaimed=0).ok

    def test_not_ok_with_violation(self):
        violation = PathViolation(requested_path="a", resolved_path="b", root="c")
        assert not DeletionResult(violation=violation).ok


class TestRunLedger:
    def make_ledger(self) -> RunLedger:
        return RunLedger(
            reports=[
                StepReport(
                    title="a",
                    status=StepStatus.SUCCESS,
                    outcome=StepOutcome(bytes_reclaimed=1000, duration_seconds=3),
                ),
                StepReport(
                    title="b",
                    status=StepStatus.SUCCESS,
                    outcome=StepOutcome(duration_seconds=1),
                ),
                StepReport(
                    title="c",
                    status=StepStatus.FAILURE,
                    outcome=StepOutcome(exit_status=3, bytes_reclaimed=50, duration_seconds=2),
                ),
                StepReport(
                    title="d",
                    status=StepStatus.SKIPPED,
                    outcome=StepOutcome(
                        confirmation=ConfirmationOutcome.USER_DECLINED,
                        bytes_reclaimed=99,
                        duration_seconds=7,
                    ),
                ),
            ]
        )

    def test_views(self):
        ledger = self.make_ledger()
        assert [r.title for r in ledger.succeeded] == ["a", "b"]
        assert [r.title for r in ledger.failed] == ["c"]
        assert [r.title for r in ledger.skipped] == ["d"]

    def test_total_reclaimed_counts_successful_known_sizes(self):
        assert self.make_ledger().total_reclaimed == 1000

    def test_total_duration_ignores_skipped(self):
        assert self.make_ledger().total_duration == 6

    def test_empty(self):
        assert RunLedger().total_reclaimed == 0
