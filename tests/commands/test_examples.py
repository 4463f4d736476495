"""Tests for the --examples flag on commands and groups."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from depsync.cli import cli


@pytest.mark.parametrize(
    ("args", "expected"),
    [
        (["sync"], "depsync sync --dry-run"),
        (["graph"], "depsync graph cycles"),
        (["graph", "diamonds"], "--kind incomplete-abstraction"),
        (["graph", "usage"], "depsync graph usage --top 5"),
        (["init"], "depsync init"),
    ],
)
def test_examples(cli_runner: CliRunner, args: list[str], expected: str) -> None:
    result = cli_runner.invoke(cli, [*args, "--examples"])
    assert result.exit_code == 0
    assert "Examples for" in result.output
    assert expected in result.output


def test_examples_in_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["sync", "--help"])
    assert "--examples" in result.output
