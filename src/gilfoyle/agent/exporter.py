"""
agent/exporter.py — Conversation Export

Serialises a ThreadState to markdown, json or plain text. Only each
event's intent and content are exported; metadata and args stay behind.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from gilfoyle.agent.state import ThreadState, parse_events
from gilfoyle.exceptions import ExportFormatError
from gilfoyle.observability.logger import get_logger

log = get_logger(__name__)


class ExportFormat(str, Enum):
    MARKDOWN = "markdown"
    JSON = "json"
    TXT = "txt"

    @property
    def extension(self) -> str:
        return {"markdown": "md", "json": "json", "txt": "txt"}[self.value]


def _resolve_format(fmt: Union[ExportFormat, str]) -> ExportFormat:
    if isinstance(fmt, ExportFormat):
        return fmt
    try:
        return ExportFormat(str(fmt).lower())
    except ValueError:
        raise ExportFormatError(fmt) from None


def _timestamp(now: Optional[datetime]) -> str:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def export_conversation(
    state: ThreadState,
    fmt: Union[ExportFormat, str] = ExportFormat.MARKDOWN,
    now: Optional[datetime] = None,
) -> str:
    """
    Render `state` in the requested format.

    Raises:
        ExportFormatError: `fmt` is not markdown, json or txt.
    """
    export_format = _resolve_format(fmt)
    events = parse_events(state)
    timestamp = _timestamp(now)
    total_tokens = state.usage.total_tokens

    if export_format is ExportFormat.MARKDOWN:
        body = "\n".join(f"### {e['intent']}\n\n{e['content']}\n" for e in events)
        return (
            "# Gilfoyle Conversation Export\n\n"
            f"**Exported:** {timestamp}\n"
            f"**Total Events:** {len(events)}\n"
            f"**Token Usage:** {total_tokens} tokens\n\n"
            "## Conversation\n\n"
            f"{body}"
        )

    if export_format is ExportFormat.JSON:
        return json.dumps(
            {
                "exported": timestamp,
                "totalEvents": len(events),
                "tokenUsage": state.usage.model_dump(),
                "systemMessage": state.system_message,
                "events": events,
            },
            indent=2,
            ensure_ascii=False,
        )

    body = "\n\n".join(f"[{e['intent']}] {e['content']}" for e in events)
    return (
        "Gilfoyle Conversation Export\n"
        f"Exported: {timestamp}\n"
        f"Total Events: {len(events)}\n"
        f"Token Usage: {total_tokens} tokens\n\n"
        f"{body}"
    )


def write_export(
    state: ThreadState,
    fmt: Union[ExportFormat, str] = ExportFormat.MARKDOWN,
    directory: Union[str, Path] = ".",
    now: Optional[datetime] = None,
) -> Path:
    """Write the export to gilfoyle-export-<timestamp>.<ext> in `directory`."""
    export_format = _resolve_format(fmt)
    now = now or datetime.now(timezone.utc)
    text = export_conversation(state, export_format, now=now)

    out_dir = Path(directory).expanduser()
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"gilfoyle-export-{now.strftime('%Y%m%d-%H%M%S')}.{export_format.extension}"
    path.write_text(text, encoding="utf-8")

    log.info("exporter.written", path=str(path), format=export_format.value, events=len(state.events))
    return path
