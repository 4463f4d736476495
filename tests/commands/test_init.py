"""Tests for the init CLI command."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from depsync.cli import cli


class TestInitCommand:
    def test_creates_config(self, cli_runner: CliRunner, workspace_root: Path) -> None:
        result = cli_runner.invoke(cli, ["-C", str(workspace_root), "init"])
        assert result.exit_code == 0
        assert (workspace_root / "depsync.toml").is_file()
        assert "depsync.toml" in result.stdout

    def test_existing_config(self, cli_runner: CliRunner, configured_workspace: Path) -> None:
        result = cli_runner.invoke(cli, ["-C", str(configured_workspace), "--json", "init"])
        assert result.exit_code == 1
        assert json.loads(result.stderr)["error"]["code"] == "CONFIG_EXISTS"

    def test_then_sync(self, cli_runner: CliRunner, workspace_root: Path) -> None:
        cli_runner.invoke(cli, ["-C", str(workspace_root), "init"])
        result = cli_runner.invoke(cli, ["-C", str(workspace_root), "sync"])
        assert result.exit_code == 0, result.output
