"""Step orchestration for maclean."""

import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from rich.console import Console

from maclean.display import (
    console as default_console,
    show_debug,
    show_error_summary,
    show_step_result,
    show_step_title,
    warn,
)
from maclean.errors import ErrorAggregator
from maclean.models import (
    RunLedger,
    RunOptions,
    Step,
    StepOutcome,
    StepReport,
    StepStatus,
)


def classify(outcome: StepOutcome) -> StepStatus:
    """Map a step outcome to its terminal status."""
    if outcome.skipped:
        return StepStatus.SKIPPED
    if outcome.exit_status == 0:
        return StepStatus.SUCCESS
    return StepStatus.FAILURE


@dataclass
class StepRunner:
    """Runs cleanup steps one at a time and keeps the run ledger.

    A failing or skipped step never stops the steps after it.
    """

    options: RunOptions
    errors: ErrorAggregator
    console: Console = field(default_factory=lambda: default_console)
    clock: Callable[[], float] = time.monotonic
    ledger: RunLedger = field(default_factory=RunLedger)

    def run(self, title: str, action: Callable[[], StepOutcome]) -> StepReport:
        """
        Run one step action, time it, and report the result.

        Args:
            title: Step title
            action: Callable producing the step's outcome

        Returns:
            StepReport appended to the ledger
        """
        start = self.clock()
        show_step_title(title, self.console)

        try:
            outcome = action()
            if not isinstance(outcome, StepOutcome):
                raise TypeError(f"step returned {type(outcome).__name__}, not a StepOutcome")
        except Exception as e:
            self.errors.record(f"{title}: unexpected error: {e}")
            outcome = StepOutcome(exit_status=1)

        duration = max(0, int(self.clock() - start))
        outcome = outcome.model_copy(update={"duration_seconds": duration})
        status = classify(outcome)

        if self.options.debug:
            show_debug(title, outcome, self.console)

        show_step_result(title, status, outcome, self.console)

        report = StepReport(title=title, status=status, outcome=outcome)
        self.ledger.reports.append(report)
        return report

    def run_step(self, step: Step, context: object) -> Optional[StepReport]:
        """Run a Step with its context; fast-skippable steps are left out in fast mode."""
        if self.options.fast and step.fast_skippable:
            warn(f"FAST=1 → Skipping {step.name}", self.console)
            return None
        return self.run(step.name, lambda: step.action(context))

    def run_all(self, steps: Iterable[Step], context: object) -> RunLedger:
        """Run every step in order."""
        for step in steps:
            self.run_step(step, context)
        return self.ledger

    def finish(self) -> int:
        """Report accumulated errors; returns the error count."""
        show_error_summary(self.errors.records, verbose=self.options.debug, out=self.console)
        return self.errors.count
