"""
tools/types.py — Tool System Data Models

Shared types used by the tool registry, the dispatcher, the classifier and
every tool implementation.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ─────────────────────────────────────────────────────────────────────────────
# Intent tags
# ─────────────────────────────────────────────────────────────────────────────


class IntentKind(str, Enum):
    """The closed set of tool intent tags the classifier may emit."""
    NONE = "none"
    WEB_SEARCH = "web_search"
    MATH_CALCULATOR = "math_calculator"
    FILE_SEARCH = "file_search"
    READ_FILE = "read_file"
    CREATE_FILE = "create_file"
    GIT_STATUS = "git_status"
    PWD = "pwd"
    TERMINAL_COMMAND = "terminal_command"
    # Recognised but not implemented yet
    GET_WEATHER = "get_weather"
    GET_STOCK_INFO = "get_stock_info"
    NPM_INFO = "npm_info"

    @classmethod
    def lookup(cls, tag: str) -> "IntentKind | None":
        try:
            return cls(tag)
        except ValueError:
            return None


# Kinds the dispatcher answers with a fixed "not implemented" event.
UNIMPLEMENTED_KINDS: dict[IntentKind, str] = {
    IntentKind.GET_WEATHER: "Weather tool",
    IntentKind.GET_STOCK_INFO: "Stock info tool",
    IntentKind.NPM_INFO: "NPM info tool",
}

# Kinds that must have an executor in the registry.
IMPLEMENTED_KINDS: frozenset[IntentKind] = frozenset(
    k for k in IntentKind if k is not IntentKind.NONE and k not in UNIMPLEMENTED_KINDS
)


class ToolIntent(BaseModel):
    """
    One classified tool request.

    `intent` stays a plain string: the model may name a tag outside
    IntentKind, and the dispatcher has to report that rather than fail
    validation up front.
    """
    model_config = ConfigDict(frozen=True)

    intent: str
    args: dict[str, Any] = Field(default_factory=dict)

    @property
    def kind(self) -> "IntentKind | None":
        return IntentKind.lookup(self.intent)

    @classmethod
    def none(cls) -> "ToolIntent":
        return cls(intent=IntentKind.NONE.value, args={})


# ─────────────────────────────────────────────────────────────────────────────
# Event status
# ─────────────────────────────────────────────────────────────────────────────


class StatusKind(str, Enum):
    """Status attached to tool events, each with a fixed icon."""
    SUCCESS = "success"
    ERROR = "error"
    PENDING = "pending"
    WAITING_FOR_FEEDBACK = "waiting_for_feedback"
    UNKNOWN = "unknown"

    @property
    def icon(self) -> str:
        return _STATUS_ICONS[self]

    @property
    def label(self) -> str:
        return self.value


_STATUS_ICONS: dict[StatusKind, str] = {
    StatusKind.SUCCESS: "✅",
    StatusKind.ERROR: "❌",
    StatusKind.PENDING: "⏳",
    StatusKind.WAITING_FOR_FEEDBACK: "🕒",
    StatusKind.UNKNOWN: "❓",
}


def event_status(status: "StatusKind | str | None" = None) -> dict[str, str]:
    """
    Build the metadata dict for a tool event.

    Any key outside the known set maps to the `unknown` status.
    """
    if isinstance(status, StatusKind):
        kind = status
    else:
        try:
            kind = StatusKind(status or "")
        except ValueError:
            kind = StatusKind.UNKNOWN
    return {"icon": kind.icon, "status": kind.label}


# ─────────────────────────────────────────────────────────────────────────────
# Tool registration metadata
# ─────────────────────────────────────────────────────────────────────────────


class ToolSchema(BaseModel):
    """
    Full metadata for a registered tool.

    `parameters` is a JSON schema object; its `required` list is what the
    dispatcher checks before invoking the tool.
    """
    name: str
    description: str
    label: str = ""                 # human name used in messages ("web search")
    category: str = "general"
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []}
    )
    enabled: bool = True

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(self.parameters.get("required", []))

    @property
    def properties(self) -> dict[str, Any]:
        return dict(self.parameters.get("properties", {}))

    @property
    def display_label(self) -> str:
        return self.label or self.name.replace("_", " ")

    def args_hint(self) -> dict[str, str]:
        """Argument example shown to the classifier: {field: description}."""
        hint: dict[str, str] = {}
        for field, spec in self.properties.items():
            desc = spec.get("description", field)
            if field not in self.required_fields:
                desc = f"optional {desc}"
            hint[field] = desc
        return hint

    def to_llm_schema(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }
