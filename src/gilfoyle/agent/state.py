"""
agent/state.py — Conversation State

The conversation record is an immutable value: ThreadState holds the
running token usage, the system prompt and an append-only tuple of
Events. Every operation here returns a new ThreadState and never mutates
its argument, so a caller can keep any earlier state and replay from it.

Usage:
    state = initialize_agent()
    state = append_event("user_input", "hello", state)
    state = add_usage(state, reply.usage)
    xml = render_context(state)
"""

from __future__ import annotations

import copy
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from gilfoyle.agent.prompts import FALLBACK_SYSTEM_PROMPT, default_system_prompt
from gilfoyle.brain.types import TokenUsage
from gilfoyle.tools.types import ToolIntent

# Intents that record conversation rather than tool calls; these never carry args.
USER_INPUT = "user_input"
LLM_RESPONSE = "llm_response"
LLM_ERROR = "llm_error"
CONVERSATION_SUMMARY = "conversation_summary"

CONVERSATIONAL_INTENTS = frozenset({USER_INPUT, LLM_RESPONSE, LLM_ERROR, CONVERSATION_SUMMARY})


# ─────────────────────────────────────────────────────────────────────────────
# Models
# ─────────────────────────────────────────────────────────────────────────────


class Event(BaseModel):
    """One entry in the conversation record."""
    model_config = ConfigDict(frozen=True)

    intent: str
    content: str
    args: Optional[dict[str, Any]] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ThreadState(BaseModel):
    """
    The full conversation record.

    Invariants: events only grow (except via compaction, which replaces
    the state wholesale), usage.total_tokens never decreases.
    """
    model_config = ConfigDict(frozen=True)

    usage: TokenUsage = Field(default_factory=TokenUsage)
    system_message: Optional[str] = None
    events: tuple[Event, ...] = ()

    @property
    def event_count(self) -> int:
        return len(self.events)


class AgentResponse(BaseModel):
    """Result of one turn: the reply text, the new state, and the reply's usage."""
    model_config = ConfigDict(frozen=True)

    content: str
    state: ThreadState
    tokens: Optional[TokenUsage] = None


# ─────────────────────────────────────────────────────────────────────────────
# Operations
# ─────────────────────────────────────────────────────────────────────────────


def initialize_agent(system_prompt: Optional[str] = None) -> ThreadState:
    """Fresh state: zero usage, no events. An empty string counts as a given prompt."""
    if system_prompt is None:
        system_prompt = default_system_prompt()
    return ThreadState(usage=TokenUsage(), system_message=system_prompt, events=())


def append_event(
    intent: Union[str, ToolIntent],
    content: str,
    state: ThreadState,
    metadata: Optional[dict[str, Any]] = None,
) -> ThreadState:
    """
    Return a new state with one Event appended.

    When a ToolIntent is passed for a non-conversational tag, a copy of its
    args is attached to the event. Metadata is copied too, so later changes
    to the caller's dicts never reach the stored event.
    """
    if isinstance(intent, ToolIntent):
        tag = intent.intent
        args = copy.deepcopy(intent.args) if tag not in CONVERSATIONAL_INTENTS else None
    else:
        tag = str(intent)
        args = None

    event = Event(
        intent=tag,
        content=content,
        args=args,
        metadata=copy.deepcopy(metadata) if metadata else {},
    )
    return state.model_copy(update={"events": state.events + (event,)})


def update_system_message(state: ThreadState, message: str) -> ThreadState:
    return state.model_copy(update={"system_message": message})


def get_system_message(state: ThreadState) -> str:
    return state.system_message or FALLBACK_SYSTEM_PROMPT


def parse_events(state: ThreadState) -> list[dict[str, str]]:
    return [{"intent": e.intent, "content": e.content} for e in state.events]


def get_latest_context(state: ThreadState, n: int = 3) -> str:
    """The last `n` events as 'intent: content' lines."""
    if not state.events or n <= 0:
        return ""
    return "\n".join(f"{e.intent}: {e.content}" for e in state.events[-n:])


def add_usage(
    state: ThreadState,
    usage: Union[TokenUsage, dict[str, Any], None],
) -> ThreadState:
    """Add a reported usage onto the running totals. Negative counts count as zero."""
    if usage is None:
        return state
    if not isinstance(usage, TokenUsage):
        usage = TokenUsage.model_validate(usage)
    return state.model_copy(update={"usage": state.usage + usage})


# ─────────────────────────────────────────────────────────────────────────────
# Rendering
# ─────────────────────────────────────────────────────────────────────────────


def _attr_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_event(event: Event) -> str:
    attrs = [f'intent="{event.intent}"']
    for key, value in event.metadata.items():
        if value is not None:
            attrs.append(f'{key}="{_attr_value(value)}"')
    return f"<event {' '.join(attrs)}>{event.content}</event>"


def render_context(state: ThreadState) -> str:
    """
    Deterministic XML-ish rendering of the record, fed to the model as context.

        <thread>
        <event intent="user_input">hi</event>
          <event intent="pwd" icon="✅" status="success">...</event>
        </thread>
    """
    body = "\n  ".join(render_event(e) for e in state.events)
    return f"<thread>\n{body}\n</thread>"
