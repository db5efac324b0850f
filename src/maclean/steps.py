"""Cleanup step actions and the default step sequence."""

import re
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape

from maclean.accounting import SizeQuery, query_usage_kb
from maclean.cleaner import delete_guarded, expand_targets, find_legacy_folders, remove_path
from maclean.display import console as default_console, ok, warn
from maclean.errors import ErrorAggregator
from maclean.models import CommandResult, ConfirmationOutcome, RunOptions, Step, StepOutcome
from maclean.prompts import confirm as ask

# Exit status of a step whose deletion batch left the designated root
PATH_VIOLATION_STATUS = 3

COMMAND_TIMEOUT = 300

LSREGISTER = (
    "/System/Library/Frameworks/CoreServices.framework/Frameworks/"
    "LaunchServices.framework/Support/lsregister"
)

NODE_CACHE_TARGETS = [
    "~/Library/Caches/Corepack",
    "~/Library/Caches/npm",
    "~/Library/Caches/pnpm",
    "~/Library/Caches/yarn",
    "~/Library/Caches/Bun",
    "~/.pnpm-store",
    "~/Library/Caches/bun",
]


@dataclass
class StepContext:
    """Everything a step action needs from the run."""

    options: RunOptions
    errors: ErrorAggregator
    console: Console = field(default_factory=lambda: default_console)
    confirm: Optional[Callable[[str], ConfirmationOutcome]] = None
    query: SizeQuery = query_usage_kb
    remover: Callable[[Path], None] = remove_path
    which: Optional[Callable[[str], Optional[str]]] = None

    def ask(self, prompt: str) -> ConfirmationOutcome:
        if self.confirm is not None:
            return self.confirm(prompt)
        return ask(prompt, auto_yes=self.options.auto_yes, console=self.console)

    def find_tool(self, name: str) -> Optional[str]:
        return (self.which or shutil.which)(name)

    def home_path(self, relative: str) -> Path:
        """Path below the designated root, written with a leading ~/."""
        return self.options.root / relative.removeprefix("~/")

    def targets(self, patterns: list[str]) -> list[Path]:
        return expand_targets(patterns, root=self.options.root)


def run_command(ctx: StepContext, command: list[str]) -> CommandResult:
    """
    Run an external tool; in dry-run mode only show it.

    Failures are recorded in the run error log.

    Args:
        ctx: Step context
        command: Command and arguments

    Returns:
        CommandResult
    """
    text = " ".join(command)
    if ctx.options.dry_run:
        ctx.console.print(f"  (dry-run) {escape(text)}")
        return CommandResult(command=text, success=True)

    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=COMMAND_TIMEOUT,
        )
    except subprocess.TimeoutExpired:
        reason = f"timed out after {COMMAND_TIMEOUT} seconds"
        ctx.errors.record(f"{text}: {reason}")
        return CommandResult(command=text, success=False, reason=reason)
    except OSError as e:
        ctx.errors.record(f"{text}: {e}")
        return CommandResult(command=text, success=False, reason=str(e))

    if result.returncode != 0:
        reason = result.stderr.strip() or f"exit status {result.returncode}"
        ctx.errors.record(f"{text}: {reason}")
        return CommandResult(
            command=text,
            success=False,
            returncode=result.returncode,
            output=result.stdout,
            reason=reason,
        )

    return CommandResult(
        command=text,
        success=True,
        returncode=0,
        output=result.stdout,
    )


def run_commands(ctx: StepContext, commands: list[list[str]]) -> int:
    """Run commands in order; returns 0 when all succeeded, 1 otherwise."""
    results = [run_command(ctx, command) for command in commands]
    return 0 if all(r.success for r in results) else 1


def purge(ctx: StepContext, confirmation: ConfirmationOutcome, paths: list[Path]) -> StepOutcome:
    """Guarded deletion of paths, turned into a step outcome."""
    result = delete_guarded(
        ctx.options.root,
        paths,
        dry_run=ctx.options.dry_run,
        errors=ctx.errors,
        console=ctx.console,
        query=ctx.query,
        remover=ctx.remover,
    )
    if result.violation is not None:
        return StepOutcome(confirmation=confirmation, exit_status=PATH_VIOLATION_STATUS)
    return StepOutcome(confirmation=confirmation, bytes_reclaimed=result.bytes_reclaimed)


def _confirmed_purge(ctx: StepContext, prompt: str, patterns: list[str]) -> StepOutcome:
    confirmation = ctx.ask(prompt)
    if not confirmation.accepted:
        return StepOutcome(confirmation=confirmation)
    return purge(ctx, confirmation, ctx.targets(patterns))


# =============================================================================
# User-level steps
# =============================================================================


def brew_cleanup(ctx: StepContext) -> StepOutcome:
    if not ctx.find_tool("brew"):
        warn("Homebrew not found; skipping", ctx.console)
        return StepOutcome(bytes_reclaimed=0)

    confirmation = ctx.ask("Run brew cleanup & autoremove?")
    if not confirmation.accepted:
        return StepOutcome(confirmation=confirmation)

    status = run_commands(ctx, [["brew", "cleanup", "-s"], ["brew", "autoremove"]])
    return StepOutcome(confirmation=confirmation, exit_status=status)


def purge_user_caches(ctx: StepContext) -> StepOutcome:
    return _confirmed_purge(
        ctx,
        "Purge user caches under ~/Library/Caches and ~/.cache?",
        ["~/Library/Caches/*", "~/.cache/*"],
    )


def purge_user_logs(ctx: StepContext) -> StepOutcome:
    return _confirmed_purge(ctx, "Purge user logs under ~/Library/Logs?", ["~/Library/Logs/*"])


def purge_crash_logs(ctx: StepContext) -> StepOutcome:
    return _confirmed_purge(
        ctx,
        "Remove DiagnosticReports and CrashReporter logs under ~/Library/Logs?",
        ["~/Library/Logs/DiagnosticReports/*", "~/Library/Logs/CrashReporter/*"],
    )


def purge_venvs(ctx: StepContext) -> StepOutcome:
    return _confirmed_purge(ctx, "Remove Python virtualenvs under ~/.venvs?", ["~/.venvs"])


def purge_python_caches(ctx: StepContext) -> StepOutcome:
    confirmation = ctx.ask("Clear pip/pipx caches?")
    if not confirmation.accepted:
        return StepOutcome(confirmation=confirmation)

    status = 0
    if ctx.find_tool("python3"):
        status = run_commands(ctx, [["python3", "-m", "pip", "cache", "purge"]])

    pipx_cache = ctx.home_path("~/Library/Caches/pipx")
    if not pipx_cache.is_dir():
        return StepOutcome(confirmation=confirmation, exit_status=status, bytes_reclaimed=0)

    outcome = purge(ctx, confirmation, [pipx_cache])
    if outcome.exit_status == 0 and status != 0:
        return outcome.model_copy(update={"exit_status": status})
    return outcome


def purge_node_caches(ctx: StepContext) -> StepOutcome:
    return _confirmed_purge(
        ctx,
        "Clear Node/Corepack/npm/pnpm/yarn/bun caches?",
        NODE_CACHE_TARGETS,
    )


def xcode_cleanup(ctx: StepContext) -> StepOutcome:
    if not ctx.options.xcode:
        warn("Xcode cleanup disabled", ctx.console)
        return StepOutcome(bytes_reclaimed=0)

    fast = ctx.options.fast
    if fast:
        warn("FAST=1 → Skipping Xcode Archives", ctx.console)

    if not ctx.home_path("~/Library/Developer/Xcode").is_dir():
        ok("No Xcode developer folder found", ctx.console)
        return StepOutcome(bytes_reclaimed=0)

    patterns = ["~/Library/Developer/Xcode/DerivedData"]
    prompt = "Remove Xcode DerivedData (Archives skipped by FAST)?"
    if not fast:
        patterns.append("~/Library/Developer/Xcode/Archives")
        prompt = "Remove Xcode DerivedData and Archives?"

    return _confirmed_purge(ctx, prompt, patterns)


def box_legacy(ctx: StepContext) -> StepOutcome:
    confirmation = ctx.ask(f"Remove legacy .Box_* folders under {ctx.options.root} (depth ≤ 2)?")
    if not confirmation.accepted:
        return StepOutcome(confirmation=confirmation)

    folders = find_legacy_folders(ctx.options.root)
    if not folders:
        ok("No legacy .Box_* folders found", ctx.console)
        return StepOutcome(confirmation=confirmation, bytes_reclaimed=0)

    ctx.console.print(f"  Found {len(folders)} legacy folders")
    return purge(ctx, confirmation, folders)


def trash_empty(ctx: StepContext) -> StepOutcome:
    return _confirmed_purge(ctx, "Empty your user Trash? (~/.Trash)", ["~/.Trash/*"])


def docker_cleanup(ctx: StepContext) -> StepOutcome:
    if not ctx.options.docker:
        warn("Docker cleanup disabled", ctx.console)
        return StepOutcome()
    if not ctx.find_tool("docker"):
        warn("Docker not found; skipping", ctx.console)
        return StepOutcome()

    confirmation = ctx.ask("Prune unused Docker data (images/containers/build cache)?")
    if not confirmation.accepted:
        return StepOutcome(confirmation=confirmation)

    status = run_commands(ctx, [["docker", "system", "prune", "-af", "--volumes"]])
    return StepOutcome(confirmation=confirmation, exit_status=status)


# =============================================================================
# System-level steps (--system)
# =============================================================================


def _system_disabled(ctx: StepContext, what: str) -> bool:
    if ctx.options.system:
        return False
    warn(f"--system not set; skipping {what}", ctx.console)
    return True


def need_sudo(ctx: StepContext) -> int:
    """Refresh sudo credentials before privileged commands."""
    return run_commands(ctx, [["sudo", "-v"]])


def parse_snapshot_ids(output: str) -> list[str]:
    """Extract snapshot dates from ``tmutil listlocalsnapshots`` output."""
    ids = []
    for line in output.splitlines():
        line = line.strip()
        if line.startswith("com.apple.TimeMachine."):
            parts = line.split(".")
            if len(parts) >= 2:
                ids.append(parts[-2])
        elif re.match(r"^\d{4}-\d{2}-\d{2}", line):
            ids.append(line.split(".")[0])
    return ids


def tm_snapshots(ctx: StepContext) -> StepOutcome:
    if _system_disabled(ctx, "Time Machine snapshots"):
        return StepOutcome()

    confirmation = ctx.ask("Purge local Time Machine snapshots? (sudo)")
    if not confirmation.accepted:
        return StepOutcome(confirmation=confirmation)

    if ctx.options.dry_run:
        ctx.console.print("  (dry-run) sudo tmutil listlocalsnapshots /")
        return StepOutcome(confirmation=confirmation)

    status = need_sudo(ctx)
    listing = run_command(ctx, ["tmutil", "listlocalsnapshots", "/"])
    if not listing.success:
        return StepOutcome(confirmation=confirmation, exit_status=1)

    ids = parse_snapshot_ids(listing.output)
    if not ids:
        ok("No local Time Machine snapshots found", ctx.console)
        return StepOutcome(confirmation=confirmation, exit_status=status)

    for snapshot_id in ids:
        ctx.console.print(f"  Deleting snapshot: {escape(snapshot_id)}")
        if not run_command(ctx, ["sudo", "tmutil", "deletelocalsnapshots", snapshot_id]).success:
            status = 1
    return StepOutcome(confirmation=confirmation, exit_status=status)


def rebuild_services(ctx: StepContext) -> StepOutcome:
    if _system_disabled(ctx, "LS/QuickLook/Spotlight"):
        return StepOutcome()

    status = 0
    answers = []

    caches = ctx.ask("Rebuild LaunchServices & Quick Look caches? (sudo not required)")
    answers.append(caches)
    if caches.accepted:
        commands = [["qlmanage", "-r", "cache"]]
        if ctx.options.dry_run or Path(LSREGISTER).exists():
            domains = ["-domain", "local", "-domain", "system", "-domain", "user"]
            commands.insert(0, [LSREGISTER, "-kill", "-r", *domains])
        status |= run_commands(ctx, commands)
    else:
        warn("Skipped LaunchServices/Quick Look rebuild", ctx.console)

    spotlight = ctx.ask("Rebuild Spotlight index for / ? (sudo, can be slow)")
    answers.append(spotlight)
    if spotlight.accepted:
        if not ctx.options.dry_run:
            status |= need_sudo(ctx)
        status |= run_commands(ctx, [["sudo", "mdutil", "-E", "/"]])
    else:
        warn("Skipped Spotlight reindex", ctx.console)

    accepted = [a for a in answers if a.accepted]
    confirmation = accepted[0] if accepted else answers[-1]
    return StepOutcome(confirmation=confirmation, exit_status=status)


def flush_dns(ctx: StepContext) -> StepOutcome:
    if _system_disabled(ctx, "DNS flush"):
        return StepOutcome()

    confirmation = ctx.ask("Flush DNS cache? (sudo)")
    if not confirmation.accepted:
        return StepOutcome(confirmation=confirmation)

    status = 0 if ctx.options.dry_run else need_sudo(ctx)
    status |= run_commands(
        ctx,
        [["sudo", "dscacheutil", "-flushcache"], ["sudo", "killall", "-HUP", "mDNSResponder"]],
    )
    return StepOutcome(confirmation=confirmation, exit_status=status)


def memory_purge(ctx: StepContext) -> StepOutcome:
    if _system_disabled(ctx, "memory purge"):
        return StepOutcome()

    confirmation = ctx.ask("Purge inactive memory? (sudo, may stall briefly)")
    if not confirmation.accepted:
        return StepOutcome(confirmation=confirmation)

    status = 0 if ctx.options.dry_run else need_sudo(ctx)
    status |= run_commands(ctx, [["sudo", "purge"]])
    return StepOutcome(confirmation=confirmation, exit_status=status)


def default_steps() -> list[Step]:
    """The fixed, ordered cleanup sequence."""
    return [
        Step(name="Homebrew cleanup", action=brew_cleanup),
        Step(name="User caches", action=purge_user_caches),
        Step(name="User logs", action=purge_user_logs),
        Step(name="Crash/Diagnostic logs", action=purge_crash_logs),
        Step(name="Python venvs (~/.venvs)", action=purge_venvs),
        Step(name="Python caches", action=purge_python_caches),
        Step(name="Node ecosystem caches", action=purge_node_caches),
        Step(name="Xcode caches", action=xcode_cleanup),
        Step(name="Legacy Box folders", action=box_legacy),
        Step(name="Empty Trash", action=trash_empty),
        Step(name="Docker prune", action=docker_cleanup, fast_skippable=True),
        Step(name="Time Machine snapshots", action=tm_snapshots),
        Step(name="LS/Quick Look/Spotlight", action=rebuild_services),
        Step(name="Flush DNS cache", action=flush_dns),
        Step(name="Memory purge", action=memory_purge),
    ]
