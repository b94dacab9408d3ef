"""
tests/unit/test_logger.py — Structured Logger Tests
"""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from gilfoyle.observability.logger import LOG_FILENAME, bind_turn, clear_turn, get_logger, setup_logging


@pytest.fixture
def log_dir(tmp_path):
    yield tmp_path / "logs"
    for handler in list(logging.root.handlers):
        handler.close()
        logging.root.removeHandler(handler)
    structlog.reset_defaults()
    clear_turn()


def _lines(log_dir):
    return [json.loads(line) for line in (log_dir / LOG_FILENAME).read_text(encoding="utf-8").splitlines()]


class TestSetupLogging:
    def test_json_line_carries_turn_context(self, log_dir):
        setup_logging(level="DEBUG", log_dir=log_dir)
        bind_turn("turn_abc123", model_id="openai:fake")
        get_logger("gilfoyle.test").info("test.event", tools=2)

        record = _lines(log_dir)[-1]
        assert record["event"] == "test.event"
        assert record["tools"] == 2
        assert record["turn_id"] == "turn_abc123"
        assert record["model_id"] == "openai:fake"
        assert record["level"] == "info"
        assert record["logger"] == "gilfoyle.test"
        assert "timestamp" in record

    def test_clear_turn_drops_context(self, log_dir):
        setup_logging(level="DEBUG", log_dir=log_dir)
        bind_turn("turn_old")
        clear_turn()
        get_logger("gilfoyle.test").info("test.after_clear")

        assert "turn_id" not in _lines(log_dir)[-1]

    def test_level_filters(self, log_dir):
        setup_logging(level="WARNING", log_dir=log_dir)
        log = get_logger("gilfoyle.test")
        log.info("test.quiet")
        log.warning("test.loud")

        assert [r["event"] for r in _lines(log_dir)] == ["test.loud"]

    def test_bound_initial_values(self, log_dir):
        setup_logging(log_dir=log_dir)
        get_logger("gilfoyle.test", component="dispatcher").info("test.bound")
        assert _lines(log_dir)[-1]["component"] == "dispatcher"
