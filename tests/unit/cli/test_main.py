"""Unit tests for the main CLI application."""

import logging
from pathlib import Path

import pytest
from fcdreaper import __version__
from fcdreaper.cli.main import app, setup_logging
from typer.testing import CliRunner

runner = CliRunner()


class TestMainApp:
    """Tests for global options and command registration."""

    def test_version(self) -> None:
        """--version prints the version and exits."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"fcdreaper version {__version__}" in result.output

    def test_help_lists_commands(self) -> None:
        """--help lists every command."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("scan", "reconcile", "inventory", "history", "config"):
            assert command in result.output

    def test_no_args_shows_help(self) -> None:
        """Running without arguments shows usage."""
        result = runner.invoke(app, [])
        assert "Usage" in result.output

    def test_verbose_and_quiet_conflict(self, xdg_dirs: Path) -> None:
        """--verbose and --quiet cannot be combined."""
        result = runner.invoke(app, ["-v", "-q", "history"])
        assert result.exit_code == 2
        assert "mutually exclusive" in result.output


class TestSetupLogging:
    """Tests for setup_logging function."""

    @pytest.mark.parametrize(
        ("verbose", "quiet", "level"),
        [
            (False, False, logging.WARNING),
            (True, False, logging.DEBUG),
            (False, True, logging.ERROR),
        ],
    )
    def test_levels(self, verbose: bool, quiet: bool, level: int) -> None:
        """The root logger level follows the verbosity flags."""
        setup_logging(verbose, quiet)
        assert logging.getLogger().level == level
