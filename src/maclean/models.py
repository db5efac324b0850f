"""Data models for maclean."""

import os
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ConfirmationOutcome(str, Enum):
    """Result of a single confirmation point."""

    AUTO_ACCEPTED = "auto"  # --yes forced acceptance
    USER_ACCEPTED = "yes"
    USER_DECLINED = "no"
    EMPTY_DEFAULTED = "empty"  # ENTER with no input, treated as No
    INVALID_DEFAULTED = "invalid"  # unrecognized input, treated as No

    @property
    def accepted(self) -> bool:
        """Whether the step may go on with its destructive work."""
        return self in (ConfirmationOutcome.AUTO_ACCEPTED, ConfirmationOutcome.USER_ACCEPTED)


class StepStatus(str, Enum):
    """Terminal state of a step."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


class RunOptions(BaseModel):
    """Run-level flags, fixed for the duration of a run."""

    model_config = ConfigDict(frozen=True)

    auto_yes: bool = Field(False, description="Assume yes to every prompt")
    dry_run: bool = Field(False, description="Report would-be sizes without deleting")
    fast: bool = Field(False, description="Skip slower sub-batches and steps")
    system: bool = Field(False, description="Enable system-level (sudo) steps")
    docker: bool = Field(True, description="Allow Docker cleanup")
    xcode: bool = Field(True, description="Allow Xcode cleanup")
    debug: bool = Field(False, description="Print per-step diagnostics and full error list")
    root: Path = Field(default_factory=Path.home, description="Designated deletion root")

    @field_validator("root")
    @classmethod
    def _root_must_be_absolute(cls, value: Path) -> Path:
        value = Path(os.path.expanduser(str(value)))
        if not value.is_absolute():
            raise ValueError(f"root must be an absolute path: {value}")
        return value


class PathValidationResult(BaseModel):
    """Outcome of checking one candidate path against the designated root."""

    requested_path: str = Field(..., description="Path as requested by the step")
    resolved_path: str = Field(..., description="Canonical form used for the containment test")
    accepted: bool = Field(..., description="Whether the path lies within the root")


class PathViolation(BaseModel):
    """A requested deletion path that resolves outside the designated root."""

    requested_path: str
    resolved_path: str
    root: str

    @property
    def message(self) -> str:
        return (
            f"Refusing to touch non-root path: {self.requested_path} "
            f"(resolves to {self.resolved_path}, root {self.root})"
        )


class ErrorRecord(BaseModel):
    """One entry of the run's error log."""

    model_config = ConfigDict(frozen=True)

    sequence: int = Field(..., ge=1, description="Insertion order, starting at 1")
    message: str


class DeletionResult(BaseModel):
    """Result of one guarded deletion batch."""

    bytes_reclaimed: Optional[int] = Field(None, description="Measured size, absent on violation")
    violation: Optional[PathViolation] = None
    deleted: list[str] = Field(default_factory=list, description="Paths removed (or simulated)")
    failed: list[str] = Field(default_factory=list, description="Paths whose removal failed")
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.violation is None


class CommandResult(BaseModel):
    """Outcome of an external tool invocation."""

    command: str
    success: bool
    returncode: Optional[int] = None
    output: str = ""
    reason: Optional[str] = Field(None, description="Failure reason when not successful")


class StepOutcome(BaseModel):
    """What a step action hands back to the runner."""

    confirmation: ConfirmationOutcome = ConfirmationOutcome.AUTO_ACCEPTED
    exit_status: int = 0
    bytes_reclaimed: Optional[int] = None
    duration_seconds: int = Field(0, ge=0)

    @property
    def skipped(self) -> bool:
        return not self.confirmation.accepted

    @property
    def reclaimed(self) -> Optional[int]:
        """Bytes freed, or None when unknown.

        Only a successful step with a non-negative integer count has a
        meaningful value; anything else is unknown rather than zero.
        """
        if self.exit_status != 0 or self.bytes_reclaimed is None:
            return None
        if self.bytes_reclaimed < 0:
            return None
        return self.bytes_reclaimed


class Step(BaseModel):
    """A named, confirmable unit of cleanup work."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    action: Callable[..., StepOutcome]
    fast_skippable: bool = False


class StepReport(BaseModel):
    """Ledger entry for one executed step."""

    title: str
    status: StepStatus
    outcome: StepOutcome


class RunLedger(BaseModel):
    """Per-run record of every executed step."""

    reports: list[StepReport] = Field(default_factory=list)

    @property
    def succeeded(self) -> list[StepReport]:
        return [r for r in self.reports if r.status == StepStatus.SUCCESS]

    @property
    def failed(self) -> list[StepReport]:
        return [r for r in self.reports if r.status == StepStatus.FAILURE]

    @property
    def skipped(self) -> list[StepReport]:
        return [r for r in self.reports if r.status == StepStatus.SKIPPED]

    @property
    def total_reclaimed(self) -> int:
        """Bytes freed by successful steps with a known count."""
        return sum(r.outcome.reclaimed or 0 for r in self.succeeded)

    @property
    def total_duration(self) -> int:
        """Seconds spent in steps that were not skipped."""
        return sum(r.outcome.duration_seconds for r in self.reports if r.status != StepStatus.SKIPPED)
