"""
agent/dispatcher.py — Tool Dispatcher

Executes classified intents one at a time, in order, and records each
outcome as an event. Nothing raised by a tool escapes: every failure
becomes an error-status event and dispatch moves on to the next intent.

Flow per intent:
  none                 → skipped
  unimplemented kind   → "<Name> tool is not implemented yet." (error)
  unknown tag          → "Unknown tool: <tag>" (error)
  required arg missing → "Missing <field> parameter for <label> tool" (error)
  executor returns     → returned text (success)
  executor raises      → "Tool execution failed: <message>" (error)
"""

from __future__ import annotations

import inspect
import time
from typing import Any, Iterable

from gilfoyle.agent.state import ThreadState, append_event
from gilfoyle.observability.logger import get_logger
from gilfoyle.tools.tool_registry import ToolRegistry
from gilfoyle.tools.types import (
    UNIMPLEMENTED_KINDS,
    IntentKind,
    StatusKind,
    ToolIntent,
    ToolSchema,
    event_status,
)

log = get_logger(__name__)


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def missing_argument_message(schema: ToolSchema) -> str:
    fields = " or ".join(schema.required_fields)
    return f"Missing {fields} parameter for {schema.display_label} tool"


def failure_message(exc: BaseException) -> str:
    text = str(exc).strip()
    return f"Tool execution failed: {text or 'Unknown error'}"


class ToolDispatcher:
    """
    Runs ToolIntents against a ToolRegistry, strictly sequentially.

    Usage:
        dispatcher = ToolDispatcher(registry)
        state = await dispatcher.execute_tools(intents, state)
    """

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def execute_tools(
        self,
        intents: Iterable[ToolIntent],
        state: ThreadState,
    ) -> ThreadState:
        for intent in intents:
            state = await self._execute_one(intent, state)
        return state

    async def _execute_one(self, intent: ToolIntent, state: ThreadState) -> ThreadState:
        kind = intent.kind

        if kind is IntentKind.NONE:
            return state

        if kind in UNIMPLEMENTED_KINDS:
            log.info("dispatcher.not_implemented", tool=intent.intent)
            return append_event(
                intent,
                f"{UNIMPLEMENTED_KINDS[kind]} is not implemented yet.",
                state,
                event_status(StatusKind.ERROR),
            )

        schema = self.registry.get_schema(intent.intent) if kind is not None else None
        handler = self.registry.get_handler(intent.intent) if kind is not None else None
        if schema is None or handler is None or not schema.enabled:
            log.warning("dispatcher.unknown_tool", tool=intent.intent)
            return append_event(
                intent,
                f"Unknown tool: {intent.intent}",
                state,
                event_status(StatusKind.ERROR),
            )

        if any(_is_missing(intent.args.get(f)) for f in schema.required_fields):
            log.warning("dispatcher.missing_args", tool=intent.intent, args=list(intent.args))
            return append_event(
                intent,
                missing_argument_message(schema),
                state,
                event_status(StatusKind.ERROR),
            )

        # Only declared parameters reach the executor
        declared = schema.properties
        kwargs = {k: v for k, v in intent.args.items() if k in declared}

        start = time.monotonic()
        try:
            result = handler(**kwargs)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            log.error(
                "dispatcher.tool_failed",
                tool=intent.intent,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round((time.monotonic() - start) * 1000, 1),
            )
            return append_event(
                intent,
                failure_message(e),
                state,
                event_status(StatusKind.ERROR),
            )

        log.info(
            "dispatcher.tool_done",
            tool=intent.intent,
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )
        content = "" if result is None else str(result)
        return append_event(intent, content, state, event_status(StatusKind.SUCCESS))
