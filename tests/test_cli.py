"""Tests for CLI interface."""

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from maclean import __version__
from maclean.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_external_tools(monkeypatch):
    """Keep brew, docker and friends out of CLI runs."""
    monkeypatch.setattr("maclean.steps.shutil.which", lambda name: None)
    monkeypatch.delenv("FAST", raising=False)


def make_home(root: Path) -> Path:
    cache = root / "Library" / "Caches" / "com.example"
    cache.mkdir(parents=True)
    (cache / "blob").write_bytes(b"x" * 4096)
    return cache


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"maclean version {__version__}" in result.stdout


class TestHelp:
    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "--dry-run" in result.stdout
        assert "--yes" in result.stdout
        assert "--fast" in result.stdout

    def test_unknown_option(self):
        result = runner.invoke(app, ["--bogus"])
        assert result.exit_code == 2


class TestSteps:
    def test_lists_steps_in_order(self):
        result = runner.invoke(app, ["steps"])
        assert result.exit_code == 0
        assert "1. Homebrew cleanup" in result.stdout
        assert "Docker prune" in result.stdout
        assert "skipped with --fast" in result.stdout


class TestRun:
    def test_relative_root_rejected(self):
        result = runner.invoke(app, ["--root", "relative/home", "-y"])
        assert result.exit_code == 2

    def test_dry_run_deletes_nothing(self, root):
        cache = make_home(root)

        result = runner.invoke(app, ["--root", str(root), "-y", "-n"])

        assert result.exit_code == 0
        assert cache.exists()
        assert "(dry-run) rm -rf" in result.stdout
        assert "Dry-run complete" in result.stdout

    def test_auto_yes_cleans_caches(self, root):
        cache = make_home(root)

        result = runner.invoke(app, ["--root", str(root), "-y"])

        assert result.exit_code == 0
        assert not cache.exists()
        assert "User caches — freed" in result.stdout
        assert "Cleanup sequence finished" in result.stdout

    def test_enter_everywhere_skips_everything(self, root):
        cache = make_home(root)

        result = runner.invoke(app, ["--root", str(root)], input="\n" * 20)

        assert result.exit_code == 0
        assert cache.exists()
        assert "defaulting to No" in result.stdout
        assert "User caches — skipped by user" in result.stdout

    def test_fast_from_environment(self, root):
        result = runner.invoke(app, ["--root", str(root), "-y", "-n"], env={"FAST": "1"})
        assert result.exit_code == 0
        assert "Skipping Docker prune" in result.stdout

    def test_debug_prints_diagnostics(self, root):
        result = runner.invoke(app, ["--root", str(root), "-y", "-n", "--debug"])
        assert result.exit_code == 0
        assert "[debug] rc=0 confirm=auto" in result.stdout

    def test_errors_do_not_change_exit_code(self, root):
        make_home(root)
        with patch("maclean.cleaner.shutil.rmtree", side_effect=PermissionError("denied")):
            result = runner.invoke(app, ["--root", str(root), "-y"])
        assert result.exit_code == 0
        assert "error(s)" in result.stdout
