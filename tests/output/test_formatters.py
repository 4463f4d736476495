"""Tests for format_result output-mode selection."""

from __future__ import annotations

import json

from depsync.output.formatters import OutputSettings, format_result
from depsync.services.result import ServiceError, ServiceResult

_SYNC = ServiceResult(ok=True, op="sync", data={"packages": 2, "files_touched": 3})
_FAILED = ServiceResult(
    ok=False,
    op="sync",
    error=ServiceError(code="CYCLES_DETECTED", message="Found 1 dependency cycle(s)"),
    exit_code=2,
)


class TestFormatResult:
    def test_json(self) -> None:
        payload = json.loads(format_result(_SYNC, settings=OutputSettings(json_output=True)))
        assert payload["ok"] is True
        assert payload["data"]["files_touched"] == 3

    def test_json_wins_over_quiet(self) -> None:
        text = format_result(_SYNC, settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(text)["op"] == "sync"

    def test_quiet(self) -> None:
        assert format_result(_SYNC, settings=OutputSettings(quiet=True)) == "OK: sync (3 file(s))"

    def test_quiet_other_op(self) -> None:
        result = ServiceResult(ok=True, op="graph_cycles")
        assert format_result(result, settings=OutputSettings(quiet=True)) == "OK: graph_cycles"

    def test_quiet_error(self) -> None:
        text = format_result(_FAILED, settings=OutputSettings(quiet=True))
        assert text.startswith("ERROR: sync")
        assert "Found 1 dependency cycle(s)" in text

    def test_default_is_rich(self) -> None:
        text = format_result(_SYNC)
        assert text.split()[:2] == ["OK", "sync"]
        assert "files_touched: 3" in text
