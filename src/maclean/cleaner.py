"""Guarded deletion with safety checks for maclean."""

import glob
import os
import shutil
from pathlib import Path
from typing import Callable, Iterable, Optional

from rich.console import Console
from rich.markup import escape

from maclean.accounting import SizeQuery, expand_path, measure_paths, query_usage_kb
from maclean.display import console as default_console
from maclean.errors import ErrorAggregator
from maclean.guard import validate_path
from maclean.models import DeletionResult, PathViolation

WILDCARD_CHARS = ("*", "?", "[")


def expand_targets(patterns: Iterable[str], root: Optional[Path] = None) -> list[Path]:
    """
    Expand glob patterns into concrete paths.

    Hidden entries are matched like any other. A pattern that matches
    nothing is kept as written so the deleter can recognise it as an
    unexpanded placeholder.

    With a root, patterns are relative to it (a leading ~/ is dropped) and
    only the pattern part is globbed, so wildcard characters in the root's
    own name are taken literally.

    Args:
        patterns: Paths or glob patterns (support ~ expansion)
        root: Directory the patterns are relative to

    Returns:
        Expanded paths, sorted within each pattern
    """
    targets = []
    for pattern in patterns:
        if root is None:
            expanded = str(expand_path(pattern))
            base = None
        else:
            expanded = pattern.removeprefix("~/")
            base = root
        if not glob.has_magic(expanded):
            targets.append(_join(base, expanded))
            continue
        matches = sorted(glob.glob(expanded, root_dir=base, include_hidden=True))
        if matches:
            targets.extend(_join(base, m) for m in matches)
        else:
            targets.append(_join(base, expanded))
    return targets


def _join(base: Optional[Path], relative: str) -> Path:
    return Path(relative) if base is None else base / relative


def is_unexpanded_placeholder(path: Path) -> bool:
    """Check whether a path is a glob pattern that matched nothing."""
    if os.path.lexists(path):
        return False
    return any(char in path.name for char in WILDCARD_CHARS)


def remove_path(path: Path) -> None:
    """
    Remove a file, symlink or directory tree.

    Symlinks are unlinked, never followed. Missing paths are ignored.

    Raises:
        OSError: If removal fails
    """
    if not os.path.lexists(path):
        return
    if path.is_symlink() or not path.is_dir():
        path.unlink()
    else:
        shutil.rmtree(path)


def find_legacy_folders(root: Path, pattern: str = ".Box_*", max_depth: int = 2) -> list[Path]:
    """
    Find directories matching a name pattern at limited depth below root.

    Args:
        root: Directory to search
        pattern: Glob pattern for the directory name
        max_depth: Deepest level to look at (1 = direct children)

    Returns:
        Matching directories not inside another match, sorted
    """
    found = []
    for depth in range(1, max_depth + 1):
        levels = ["*"] * (depth - 1) + [pattern]
        for match in root.glob("/".join(levels)):
            if match.is_dir() and not match.is_symlink():
                found.append(match)
    found = sorted(set(found))
    outermost = set(found)
    return [f for f in found if not any(parent in outermost for parent in f.parents)]


def delete_guarded(
    root: Path,
    paths: Iterable[Path],
    dry_run: bool,
    errors: ErrorAggregator,
    console: Optional[Console] = None,
    query: SizeQuery = query_usage_kb,
    remover: Callable[[Path], None] = remove_path,
) -> DeletionResult:
    """
    Delete a batch of paths, all of which must lie inside root.

    Validation is all-or-nothing: a single path resolving outside root
    cancels the whole batch. Deletion is best-effort: a failure on one
    path is recorded and the rest of the batch still goes.

    Args:
        root: Designated root directory
        paths: Batch of paths to delete
        dry_run: If True, only report what would be removed
        errors: Run error log
        console: Console for dry-run notices
        query: Size query used for measurement
        remover: Delete primitive

    Returns:
        DeletionResult with the size measured before deletion, or the violation
    """
    out = console or default_console
    batch = [Path(p) for p in paths]

    for path in batch:
        check = validate_path(root, path)
        if not check.accepted:
            violation = PathViolation(
                requested_path=check.requested_path,
                resolved_path=check.resolved_path,
                root=str(root),
            )
            errors.record(violation.message)
            return DeletionResult(violation=violation, dry_run=dry_run)

    accepted = [path for path in batch if not is_unexpanded_placeholder(path)]
    if not accepted:
        return DeletionResult(bytes_reclaimed=0, dry_run=dry_run)

    reclaimable = measure_paths(accepted, query=query)

    if dry_run:
        for path in accepted:
            out.print(f"  (dry-run) rm -rf {escape(str(path))}")
        return DeletionResult(
            bytes_reclaimed=reclaimable,
            deleted=[str(p) for p in accepted],
            dry_run=True,
        )

    deleted = []
    failed = []
    for path in accepted:
        try:
            remover(path)
        except OSError as e:
            errors.record(f"Failed to remove {path}: {e}")
            failed.append(str(path))
        else:
            deleted.append(str(path))

    return DeletionResult(
        bytes_reclaimed=reclaimable,
        deleted=deleted,
        failed=failed,
    )
