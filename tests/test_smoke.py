from __future__ import annotations

from typer.testing import CliRunner

from selfcached_cli.cli import app


def test_cli_help_lists_cache_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    assert "Usage:" in result.output
    for command in ("restore", "store", "inspect"):
        assert command in result.output


def test_cli_restore_help_lists_inputs() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["restore", "--help"])

    assert result.exit_code == 0
    for option in ("--path", "--key", "--dir", "--compress", "--state-file"):
        assert option in result.output
