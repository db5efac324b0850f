"""Path containment checks that gate every deletion."""

import os
from pathlib import Path

from maclean.models import PathValidationResult


def canonicalize(path: Path) -> Path:
    """
    Resolve a path to its absolute, symlink-free form.

    When the path does not exist, the existing part of it is resolved and
    the rest kept as written (a dangling symlink still resolves to where it
    points). Falls back to the literal absolute path when even that is
    impossible (permission denied, symlink loop).

    Args:
        path: Path to resolve

    Returns:
        Canonical path
    """
    try:
        return Path(path).resolve(strict=True)
    except (OSError, RuntimeError):
        pass
    try:
        return Path(path).resolve(strict=False)
    except (OSError, RuntimeError):
        return Path(os.path.abspath(path))


def is_within(root: Path, candidate: Path) -> bool:
    """Check whether candidate is root or a descendant, comparing path components."""
    root_parts = Path(root).parts
    candidate_parts = Path(candidate).parts
    return candidate_parts[: len(root_parts)] == root_parts


def validate_path(root: Path, candidate: Path) -> PathValidationResult:
    """
    Check that a candidate path resolves inside the designated root.

    Symlinks are followed to their final target, so a link under the root
    that points elsewhere is rejected. A path that cannot be resolved is
    tested in its literal form, letting a vanished path through to a
    no-op deletion.

    Args:
        root: Designated root directory
        candidate: Path requested for deletion

    Returns:
        PathValidationResult; never raises
    """
    resolved_root = canonicalize(root)
    resolved = canonicalize(candidate)
    return PathValidationResult(
        requested_path=str(candidate),
        resolved_path=str(resolved),
        accepted=is_within(resolved_root, resolved),
    )
