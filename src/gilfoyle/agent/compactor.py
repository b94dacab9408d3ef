"""
agent/compactor.py — Conversation Compaction

Replaces a long event history with a single model-written summary.
Short conversations (at most `min_events` events) are returned as-is,
and any failure during summarisation returns the original state.
"""

from __future__ import annotations

from gilfoyle.agent.prompts import COMPACTION_SYSTEM_PROMPT, build_compaction_prompt
from gilfoyle.agent.state import CONVERSATION_SUMMARY, Event, ThreadState
from gilfoyle.brain.llm_client import BaseChatModel
from gilfoyle.brain.types import Message
from gilfoyle.observability.logger import get_logger

log = get_logger(__name__)

DEFAULT_MIN_EVENTS = 5

SUMMARY_METADATA = {"type": "system", "status": "compacted"}


def conversation_text(state: ThreadState) -> str:
    return "\n".join(f"{e.intent}: {e.content}" for e in state.events)


async def compact_conversation(
    state: ThreadState,
    model: BaseChatModel,
    min_events: int = DEFAULT_MIN_EVENTS,
) -> ThreadState:
    """
    Summarise `state` into one conversation_summary event.

    Usage and the system message carry over unchanged; the summary call's
    own token usage is not added to the running totals.
    """
    if len(state.events) <= min_events:
        return state

    messages = [
        Message.system(COMPACTION_SYSTEM_PROMPT),
        Message.user(build_compaction_prompt(conversation_text(state))),
    ]
    try:
        reply = await model.invoke(messages)
    except Exception as e:
        log.error("compactor.failed", error=str(e), error_type=type(e).__name__)
        return state

    summary = Event(
        intent=CONVERSATION_SUMMARY,
        content=reply.content,
        metadata=dict(SUMMARY_METADATA),
    )
    log.info("compactor.compacted", events_before=len(state.events), chars=len(reply.content))
    return state.model_copy(update={"events": (summary,)})
