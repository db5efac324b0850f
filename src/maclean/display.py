"""Rich terminal display for maclean."""

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from maclean.models import ErrorRecord, RunLedger, StepOutcome, StepStatus

console = Console()

SIZE_UNITS = ["B", "K", "M", "G", "T", "P", "E", "Z", "Y"]


def format_size(size_bytes: int) -> str:
    """Format bytes to a human-readable string (binary units, like du -h)."""
    size = float(size_bytes)
    unit = 0
    while abs(size) >= 1024 and unit < len(SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.1f} {SIZE_UNITS[unit]}"


def ok(message: str, out: Optional[Console] = None) -> None:
    (out or console).print(f"[green]✓ {escape(message)}[/green]")


def warn(message: str, out: Optional[Console] = None) -> None:
    (out or console).print(f"[yellow]⚠ {escape(message)}[/yellow]")


def err(message: str, out: Optional[Console] = None) -> None:
    (out or console).print(f"[red]✗ {escape(message)}[/red]")


def show_banner(version: str, dry_run: bool = False, out: Optional[Console] = None) -> None:
    """Display the start-of-run banner."""
    out = out or console
    out.print(f"[bold]macOS cleanup — interactive ({version})[/bold]")
    if dry_run:
        out.print("[yellow]DRY RUN - No files will be deleted[/yellow]")


def show_step_title(title: str, out: Optional[Console] = None) -> None:
    (out or console).print(f"[blue]— {escape(title)}[/blue]")


def show_debug(title: str, outcome: StepOutcome, out: Optional[Console] = None) -> None:
    """Display raw per-step diagnostics."""
    bytes_value = "" if outcome.bytes_reclaimed is None else str(outcome.bytes_reclaimed)
    (out or console).print(
        f"  [dim]\\[debug] rc={outcome.exit_status} "
        f"confirm={outcome.confirmation.value} bytes={bytes_value}[/dim]"
    )


def show_step_result(
    title: str,
    status: StepStatus,
    outcome: StepOutcome,
    out: Optional[Console] = None,
) -> None:
    """Display the status line for a finished step."""
    if status == StepStatus.SKIPPED:
        warn(f"{title} — skipped by user (ENTER defaults to No)", out)
    elif status == StepStatus.SUCCESS:
        if outcome.reclaimed is not None:
            ok(
                f"{title} — freed ~{format_size(outcome.reclaimed)} "
                f"in {outcome.duration_seconds}s",
                out,
            )
        else:
            ok(f"{title} — done in {outcome.duration_seconds}s", out)
    else:
        warn(
            f"{title} — finished with non-zero exit ({outcome.exit_status}) "
            f"in {outcome.duration_seconds}s",
            out,
        )


def show_error_summary(
    records: list[ErrorRecord],
    verbose: bool = False,
    out: Optional[Console] = None,
) -> None:
    """Display the end-of-run error count, and every message when verbose."""
    if not records:
        return
    out = out or console
    warn(f"Encountered {len(records)} error(s) during cleanup", out)
    if verbose:
        for record in records:
            out.print(f"  {record.sequence}. {escape(record.message)}")
    else:
        out.print("[dim]Run with --debug to see the full error list[/dim]")


def show_run_summary(ledger: RunLedger, dry_run: bool = False, out: Optional[Console] = None) -> None:
    """Display a table of per-step results."""
    out = out or console
    status_styles = {
        StepStatus.SUCCESS: "[green]done[/green]",
        StepStatus.FAILURE: "[red]failed[/red]",
        StepStatus.SKIPPED: "[yellow]skipped[/yellow]",
    }

    table = Table(title="Cleanup Summary", show_header=True, header_style="bold")
    table.add_column("Step")
    table.add_column("Status")
    table.add_column("Freed", justify="right")
    table.add_column("Time", justify="right")

    for report in ledger.reports:
        reclaimed = report.outcome.reclaimed
        skipped = report.status == StepStatus.SKIPPED
        table.add_row(
            escape(report.title),
            status_styles.get(report.status, report.status.value),
            "-" if skipped or reclaimed is None else format_size(reclaimed),
            "-" if skipped else f"{report.outcome.duration_seconds}s",
        )

    out.print(table)
    label = "Estimated reclaimable" if dry_run else "Freed by steps"
    out.print(f"[bold]{label}: ~{format_size(ledger.total_reclaimed)}[/bold]")


def show_largest_entries(
    title: str,
    entries: list[tuple[Path, int]],
    out: Optional[Console] = None,
) -> None:
    """Display a table of the largest directories."""
    if not entries:
        return
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Path")
    for path, size in entries:
        table.add_row(format_size(size), escape(str(path)))
    (out or console).print(table)
