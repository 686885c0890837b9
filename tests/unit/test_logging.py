"""Unit tests for StructuredLogger / get_logger."""

from __future__ import annotations

import json
import logging

import pytest

from silotherm.utils.logging import StructuredLogger, get_logger


def _json_lines(text: str) -> list[dict]:
    return [json.loads(line) for line in text.strip().splitlines() if line]


class TestStructuredLogger:
    def test_get_logger_returns_structured_logger(self) -> None:
        """get_logger returns a StructuredLogger instance."""
        logger = get_logger("test.structured_logger.basic")
        assert isinstance(logger, StructuredLogger)

    def test_get_logger_same_name_returns_same_instance(self) -> None:
        name = "test.structured_logger.cache"
        assert get_logger(name) is get_logger(name)

    def test_logger_name(self) -> None:
        name = "test.structured_logger.name_check"
        assert get_logger(name).name == name

    def test_output_is_json_on_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Records go to stderr as JSON; stdout stays clean for CLI output."""
        logger = get_logger("test.json_output_unique_1")
        logger.info("hello from unit test")
        captured = capsys.readouterr()
        assert captured.out == ""
        records = _json_lines(captured.err)
        assert len(records) >= 1
        for obj in records:
            assert {"timestamp", "level", "name", "message"} <= obj.keys()

    def test_output_contains_message(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("test.json_output_unique_2")
        logger.info("specific test message 42")
        records = _json_lines(capsys.readouterr().err)
        assert any(r.get("message") == "specific test message 42" for r in records)

    def test_warning_level_in_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("test.warning_level_unique_3")
        logger.warning("this is a warning")
        records = _json_lines(capsys.readouterr().err)
        assert any(r.get("level") == "WARNING" for r in records)

    def test_extra_fields_in_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Extra keyword arguments appear in the JSON output."""
        logger = get_logger("test.extra_fields_unique_4")
        logger.info("run done", controller="FuzzyPID", settling_time=412.8)
        records = _json_lines(capsys.readouterr().err)
        assert any(
            r.get("controller") == "FuzzyPID" and r.get("settling_time") == 412.8
            for r in records
        ), "Extra fields not found in output"

    def test_debug_suppressed_at_info_level(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("test.debug_suppressed_unique_5", level=logging.INFO)
        logger.debug("invisible")
        assert capsys.readouterr().err == ""

    def test_set_level_enables_debug(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("test.set_level_unique_6", level=logging.INFO)
        logger.set_level(logging.DEBUG)
        logger.debug("now visible")
        records = _json_lines(capsys.readouterr().err)
        assert any(r.get("level") == "DEBUG" for r in records)

    def test_level_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SILOTHERM_LOG_LEVEL", "warning")
        logger = StructuredLogger("test.env_level_unique_7")
        assert logger._logger.level == logging.WARNING

    def test_unknown_environment_level_falls_back_to_info(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SILOTHERM_LOG_LEVEL", "chatty")
        logger = StructuredLogger("test.env_level_unique_8")
        assert logger._logger.level == logging.INFO

    def test_exception_includes_traceback(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("test.exception_unique_9")
        try:
            raise ZeroDivisionError("boom")
        except ZeroDivisionError:
            logger.exception("failed")
        records = _json_lines(capsys.readouterr().err)
        assert "ZeroDivisionError" in records[-1]["exc_info"]

    def test_infinite_extra_is_serialised(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("test.inf_extra_unique_10")
        logger.info("margins", gain_margin_db=float("inf"))
        captured = capsys.readouterr().err
        assert "Infinity" in captured
