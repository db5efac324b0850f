"""CLI interface for maclean."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from maclean import __version__
from maclean.accounting import get_free_bytes, largest_entries
from maclean.display import (
    console,
    format_size,
    ok,
    show_banner,
    show_largest_entries,
    show_run_summary,
    warn,
)
from maclean.errors import ErrorAggregator
from maclean.models import RunLedger, RunOptions
from maclean.runner import StepRunner
from maclean.steps import StepContext, default_steps

app = typer.Typer(
    name="maclean",
    help="Interactive macOS developer cleanup - caches, build artifacts, Docker, Trash",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"maclean version {__version__}")
        raise typer.Exit()


def run_cleanup(options: RunOptions, out: Console = console) -> RunLedger:
    """
    Run the full cleanup sequence.

    Args:
        options: Run-level flags
        out: Console for all output and prompts

    Returns:
        RunLedger with one report per executed step
    """
    errors = ErrorAggregator(echo=options.debug, console=out)
    context = StepContext(options=options, errors=errors, console=out)
    runner = StepRunner(options=options, errors=errors, console=out)

    show_banner(__version__, dry_run=options.dry_run, out=out)
    start_free = get_free_bytes(options.root)

    ledger = runner.run_all(default_steps(), context)

    end_free = get_free_bytes(options.root)
    if start_free > 0 and end_free > 0:
        if options.dry_run:
            warn("Dry-run mode — reported reclaimed space is estimated per-step only", out)
        else:
            ok(f"Total space reclaimed: {format_size(end_free - start_free)}", out)

    out.print()
    show_run_summary(ledger, dry_run=options.dry_run, out=out)

    out.print()
    out.print("— Generating summary report")
    show_largest_entries(f"Top 10 directories under {options.root}", largest_entries(options.root), out)
    caches = options.root / "Library" / "Caches"
    if caches.is_dir():
        show_largest_entries("Largest cache folders", largest_entries(caches), out)

    runner.finish()

    if options.dry_run:
        warn("Dry-run complete. Re-run without -n to apply.", out)
    else:
        ok("Cleanup sequence finished", out)
    return ledger


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "-y", "--yes", help="Non-interactive; assume yes to all prompts"),
    dry_run: bool = typer.Option(
        False, "-n", "--dry-run", help="Show what would be removed without deleting anything"
    ),
    fast: bool = typer.Option(
        False, "--fast", envvar="FAST", help="Skip slower steps (Xcode Archives, Docker prune)"
    ),
    system: bool = typer.Option(False, "--system", help="Enable system-level tasks (sudo)"),
    no_docker: bool = typer.Option(False, "--no-docker", help="Skip Docker cleanup"),
    no_xcode: bool = typer.Option(False, "--no-xcode", help="Skip Xcode cleanup"),
    debug: bool = typer.Option(False, "--debug", help="Print per-step rc and confirm status"),
    root: Optional[Path] = typer.Option(
        None, "--root", hidden=True, help="Designated deletion root (defaults to home)"
    ),
    version: bool = typer.Option(
        None,
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """maclean - unified macOS cleanup."""
    if ctx.invoked_subcommand is not None:
        return

    if root is not None and not root.is_absolute():
        console.print(f"[red]Error: --root must be an absolute path: {root}[/red]")
        raise typer.Exit(2)

    options = RunOptions(
        auto_yes=yes,
        dry_run=dry_run,
        fast=fast,
        system=system,
        docker=not no_docker,
        xcode=not no_xcode,
        debug=debug,
        root=root or Path.home(),
    )
    run_cleanup(options)


@app.command(name="steps")
def list_steps() -> None:
    """List the cleanup steps in the order they run."""
    console.print("[bold]Cleanup Steps[/bold]\n")
    for i, step in enumerate(default_steps(), 1):
        note = " [dim](skipped with --fast)[/dim]" if step.fast_skippable else ""
        console.print(f"  {i:>2}. {step.name}{note}")


if __name__ == "__main__":
    app()
