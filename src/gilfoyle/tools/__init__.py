"""
tools/__init__.py — Gilfoyle Tool System

Public interface for the tool system.

Usage:
    from gilfoyle.tools import build_default_registry
    from gilfoyle.agent.dispatcher import ToolDispatcher

    registry = build_default_registry(settings)
    state = await ToolDispatcher(registry).execute_tools(intents, state)
"""

from __future__ import annotations

from gilfoyle.tools.tool_registry import ToolHandler, ToolRegistry
from gilfoyle.tools.types import (
    IMPLEMENTED_KINDS,
    UNIMPLEMENTED_KINDS,
    IntentKind,
    StatusKind,
    ToolIntent,
    ToolSchema,
    event_status,
)

__all__ = [
    "ToolRegistry",
    "ToolHandler",
    "build_default_registry",
    # Types
    "IntentKind",
    "ToolIntent",
    "ToolSchema",
    "StatusKind",
    "event_status",
    "IMPLEMENTED_KINDS",
    "UNIMPLEMENTED_KINDS",
]


def build_default_registry(settings=None) -> ToolRegistry:
    """
    Build a registry holding every built-in tool, configured from Settings.

    Raises:
        RuntimeError: an implemented intent kind ended up without an executor.
    """
    from gilfoyle.config.settings import get_settings
    from gilfoyle.tools import calculator, filesystem, git, search, terminal

    settings = settings or get_settings()
    registry = ToolRegistry()

    search.register(registry, settings)
    calculator.register(registry)
    filesystem.register(registry, settings)
    git.register(registry)
    terminal.register(registry, settings)

    missing = registry.missing_kinds()
    if missing:
        raise RuntimeError(
            f"Tool registry is missing executors for: {sorted(k.value for k in missing)}"
        )
    return registry
