"""
agent/responder.py — Response Generator

Produces the assistant reply for a turn: one model call with the system
prompt and the rendered conversation, then records the outcome.

On success an `llm_response` event is appended and the reply's usage is
added to the running totals. On failure an `llm_error` event carrying
"LLM call failed: <message>" is appended and that same text becomes the
reply; generate() never raises.
"""

from __future__ import annotations

from typing import Optional

from gilfoyle.agent.state import (
    LLM_ERROR,
    LLM_RESPONSE,
    AgentResponse,
    ThreadState,
    add_usage,
    append_event,
    get_system_message,
    render_context,
)
from gilfoyle.brain.llm_client import ModelProvider
from gilfoyle.brain.types import Message
from gilfoyle.observability.logger import get_logger

log = get_logger(__name__)


class ResponseGenerator:
    """
    Usage:
        responder = ResponseGenerator(model_provider)
        response = await responder.generate(state, "openai:gpt-4.1-mini")
    """

    def __init__(self, model_provider: ModelProvider):
        self._models = model_provider

    def build_messages(self, state: ThreadState) -> list[Message]:
        return [
            Message.system(get_system_message(state)),
            Message.user(render_context(state)),
        ]

    async def generate(self, state: ThreadState, model_id: Optional[str] = None) -> AgentResponse:
        model_id = model_id or self._models.default_model
        messages = self.build_messages(state)

        try:
            model = self._models.get(model_id)
            reply = await model.invoke(messages)
        except Exception as e:
            error_text = f"LLM call failed: {str(e).strip() or 'Unknown error'}"
            log.error(
                "responder.model_failed",
                model_id=model_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            state = append_event(LLM_ERROR, error_text, state)
            return AgentResponse(content=error_text, state=state)

        state = append_event(LLM_RESPONSE, reply.content, state, {"model": model_id})
        state = add_usage(state, reply.usage)
        log.info(
            "responder.reply",
            model_id=model_id,
            chars=len(reply.content),
            total_tokens=reply.usage.total_tokens if reply.usage else None,
        )
        return AgentResponse(content=reply.content, state=state, tokens=reply.usage)
