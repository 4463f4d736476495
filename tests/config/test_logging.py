"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging

import pytest

from depsync.config.logging import configure_logging, get_logger


class TestConfigureLogging:
    def test_default_level_is_warning(self) -> None:
        configure_logging()
        assert logging.getLogger("depsync").level == logging.WARNING

    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("depsync").level == logging.DEBUG

    def test_json_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_json=True)
        get_logger("scan").warning("scan.failed", files=3)
        err = capfd.readouterr().err.strip().splitlines()[-1]
        record = json.loads(err)
        assert record["event"] == "scan.failed"
        assert record["files"] == 3
        assert record["logger"] == "depsync.scan"
        assert record["level"] == "warning"

    def test_info_suppressed_without_verbose(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_json=True)
        get_logger("scan").info("scan.complete")
        assert "scan.complete" not in capfd.readouterr().err
