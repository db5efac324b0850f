"""Disk usage measurement for maclean."""

import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable, Optional

# du -sk reports 1024-byte blocks
KILOBYTE = 1024

SizeQuery = Callable[[Path], Optional[str]]


def expand_path(path: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expanduser(os.path.expandvars(path)))


def query_usage_kb(path: Path) -> Optional[str]:
    """
    Ask du for the disk usage of a path.

    Args:
        path: File or directory to measure

    Returns:
        Raw kilobyte field from ``du -sk`` output, or None if unavailable
    """
    if not os.path.lexists(path):
        return None

    try:
        result = subprocess.run(
            ["du", "-sk", str(path)],
            capture_output=True,
            text=True,
            timeout=300,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None

    # du exits 1 on unreadable subentries but still prints a total
    fields = result.stdout.split()
    if not fields:
        return None
    return fields[0]


def parse_kilobytes(raw: Optional[str]) -> int:
    """Parse a du measurement; empty or non-numeric values count as 0."""
    if raw is None:
        return 0
    raw = raw.strip()
    if not raw.isdecimal():
        return 0
    return int(raw)


def measure_paths(paths: Iterable[Path], query: SizeQuery = query_usage_kb) -> int:
    """
    Total disk usage of a set of paths, in bytes.

    Each path is measured on its own; missing paths and unusable
    measurements contribute nothing. Kilobytes are summed first and
    converted to bytes once.

    Args:
        paths: Paths to measure
        query: Size query returning a raw kilobyte string or None

    Returns:
        Total bytes
    """
    total_kb = 0
    for path in paths:
        total_kb += parse_kilobytes(query(Path(path)))
    return total_kb * KILOBYTE


def get_free_bytes(path: Path) -> int:
    """Available bytes on the filesystem holding path, 0 if unavailable."""
    try:
        return shutil.disk_usage(path).free
    except OSError:
        return 0


def largest_entries(
    directory: Path,
    limit: int = 10,
    query: SizeQuery = query_usage_kb,
) -> list[tuple[Path, int]]:
    """
    Largest direct children of a directory.

    Args:
        directory: Directory whose entries are measured
        limit: Number of entries to return
        query: Size query returning a raw kilobyte string or None

    Returns:
        List of (path, bytes) sorted by size, largest first
    """
    try:
        entries = list(directory.iterdir())
    except (PermissionError, OSError):
        return []

    sizes = [(entry, parse_kilobytes(query(entry)) * KILOBYTE) for entry in entries]
    sizes.sort(key=lambda item: item[1], reverse=True)
    return sizes[:limit]
