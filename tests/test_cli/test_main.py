"""Tests for CLI main module."""

from __future__ import annotations

import pytest


class TestCliImport:
    """Tests for CLI import availability."""

    def test_can_import_cli_with_typer(self) -> None:
        """Test CLI can be imported when typer is available."""
        pytest.importorskip("typer")
        from har_recorder.cli.main import app

        assert app is not None

    @pytest.mark.parametrize("flag", ["--version", "-V"])
    def test_version_option(self, flag: str) -> None:
        """Test version option works."""
        pytest.importorskip("typer")
        from typer.testing import CliRunner

        from har_recorder import __version__
        from har_recorder.cli.main import app

        runner = CliRunner()
        result = runner.invoke(app, [flag])
        assert result.exit_code == 0
        assert f"har-recorder {__version__}" in result.stdout

    def test_commands_registered(self) -> None:
        """Both replay and redact are available."""
        pytest.importorskip("typer")
        from typer.testing import CliRunner

        from har_recorder.cli.main import app

        result = CliRunner().invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "replay" in result.stdout
        assert "redact" in result.stdout
