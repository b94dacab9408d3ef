"""
exceptions.py — Gilfoyle Error Hierarchy

All Gilfoyle-specific exceptions live here. Tools raise typed subclasses of
ToolError; the dispatcher turns them into error events.

Hierarchy:
    GilfoyleError
    ├── AgentError
    │   └── ExportFormatError
    ├── ToolError
    │   ├── ToolTimeoutError
    │   ├── ToolValidationError
    │   ├── CommandNotAllowedError
    │   └── FileAccessDeniedError
    └── LLMError  (re-exported from brain)
        ├── LLMConnectionError
        ├── LLMRateLimitError
        ├── LLMContextError
        └── LLMInvalidRequestError
"""

from __future__ import annotations

from gilfoyle.brain.llm_client import (  # noqa: F401 — re-export
    LLMConnectionError,
    LLMContextError,
    LLMError,
    LLMInvalidRequestError,
    LLMRateLimitError,
)


# ─────────────────────────────────────────────────────────────────────────────
# Root
# ─────────────────────────────────────────────────────────────────────────────

class GilfoyleError(Exception):
    """Base class for all Gilfoyle exceptions."""


# ─────────────────────────────────────────────────────────────────────────────
# Agent layer
# ─────────────────────────────────────────────────────────────────────────────

class AgentError(GilfoyleError):
    """Base for agent core errors."""


class ExportFormatError(AgentError, ValueError):
    """Requested export format is not one of markdown / json / txt."""

    def __init__(self, fmt: object) -> None:
        self.format = fmt
        super().__init__(f"Unsupported export format: {fmt}")


# ─────────────────────────────────────────────────────────────────────────────
# Tool layer
# ─────────────────────────────────────────────────────────────────────────────

class ToolError(GilfoyleError):
    """Base for all tool errors."""


class ToolTimeoutError(ToolError):
    """Tool execution exceeded its time limit."""


class ToolValidationError(ToolError):
    """Tool arguments failed validation."""


class CommandNotAllowedError(ToolError):
    """Shell command matched a blocked pattern."""

    def __init__(self, command: str, message: str = "") -> None:
        self.command = command
        super().__init__(message or f'Command blocked for security reasons: "{command}"')


class FileAccessDeniedError(ToolError):
    """Path matches a sensitive-file pattern."""

    def __init__(self, path: str, message: str = "") -> None:
        self.path = path
        super().__init__(
            message or f'Access denied to "{path}": this file may contain sensitive information.'
        )


__all__ = [
    "GilfoyleError",
    # Agent
    "AgentError",
    "ExportFormatError",
    # Tool
    "ToolError",
    "ToolTimeoutError",
    "ToolValidationError",
    "CommandNotAllowedError",
    "FileAccessDeniedError",
    # LLM (re-exported)
    "LLMError",
    "LLMConnectionError",
    "LLMRateLimitError",
    "LLMContextError",
    "LLMInvalidRequestError",
]
