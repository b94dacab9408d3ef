"""
observability/logger.py — Gilfoyle Structured Logger

Every module logs through structlog with dotted event names
("dispatcher.tool_failed", "responder.reply"). Lines land as JSON in
~/.config/gilfoyle/logs/gilfoyle.log; stderr output is opt-in because the
REPL owns the terminal.

Each turn binds a turn_id (and the model id) into contextvars, so every
line written while the turn runs can be grouped afterwards.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog

LOG_FILENAME = "gilfoyle.log"

_PRE_CHAIN: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _rotating_file(log_dir: Path, max_bytes: int, backup_count: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        filename=log_dir / LOG_FILENAME,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )


def setup_logging(
    level: str = "INFO",
    log_dir: str | Path = "~/.config/gilfoyle/logs",
    json_format: bool = True,
    console_output: bool = False,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
) -> None:
    """
    Route structlog through stdlib logging into a rotating file and,
    if console_output is set, stderr. Safe to call again: handlers from an
    earlier call are replaced.

    json_format=False switches the renderer to structlog's coloured
    ConsoleRenderer, which is easier to read while debugging.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers = [_rotating_file(Path(log_dir).expanduser(), max_bytes, backup_count)]
    if console_output:
        handlers.append(logging.StreamHandler(sys.stderr))

    renderer = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=True)
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=_PRE_CHAIN,
    )
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "gilfoyle", **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """Logger for `name`, with `initial_values` bound onto every line."""
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


def bind_turn(turn_id: str, **extra: Any) -> None:
    structlog.contextvars.bind_contextvars(turn_id=turn_id, **extra)


def clear_turn() -> None:
    structlog.contextvars.clear_contextvars()
