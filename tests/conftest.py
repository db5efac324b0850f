"""Shared fixtures for maclean tests."""

from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

from maclean.errors import ErrorAggregator
from maclean.models import RunOptions


class FakeSizes:
    """Size query answering from a table of kilobyte strings."""

    def __init__(self, sizes: dict[str, str] | None = None, default: str | None = "1"):
        self.sizes = sizes or {}
        self.default = default
        self.calls: list[Path] = []

    def __call__(self, path: Path) -> str | None:
        self.calls.append(path)
        if str(path) in self.sizes:
            return self.sizes[str(path)]
        if not path.exists() and not path.is_symlink():
            return None
        return self.default


@pytest.fixture
def buffer() -> StringIO:
    return StringIO()


@pytest.fixture
def out(buffer) -> Console:
    return Console(file=buffer, width=200, no_color=True, highlight=False)


@pytest.fixture
def root(tmp_path) -> Path:
    home = tmp_path / "home" / "u"
    home.mkdir(parents=True)
    return home.resolve()


@pytest.fixture
def errors(out) -> ErrorAggregator:
    return ErrorAggregator(console=out)


@pytest.fixture
def options(root) -> RunOptions:
    return RunOptions(auto_yes=True, root=root)


@pytest.fixture
def fake_sizes():
    return FakeSizes
