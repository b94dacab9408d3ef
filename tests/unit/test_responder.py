"""
tests/unit/test_responder.py — Response Generator Tests
"""

from __future__ import annotations

import pytest

from gilfoyle.agent.responder import ResponseGenerator
from gilfoyle.agent.state import add_usage, append_event, initialize_agent, render_context
from gilfoyle.brain.llm_client import LLMRateLimitError
from gilfoyle.brain.types import Role, TokenUsage


class TestResponseGenerator:
    @pytest.mark.asyncio
    async def test_success_appends_reply_and_usage(self, fake_model, model_provider, make_reply):
        fake_model.queue(make_reply("hi there", prompt=10, completion=5))
        state = add_usage(initialize_agent("sys"), TokenUsage(prompt_tokens=1, total_tokens=1))
        state = append_event("user_input", "hello", state)

        response = await ResponseGenerator(model_provider).generate(state, "openai:fake")

        assert response.content == "hi there"
        assert response.tokens == TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15)
        last = response.state.events[-1]
        assert last.intent == "llm_response"
        assert last.content == "hi there"
        assert last.metadata == {"model": "openai:fake"}
        assert response.state.usage == TokenUsage(prompt_tokens=11, completion_tokens=5, total_tokens=16)

    @pytest.mark.asyncio
    async def test_messages_are_system_then_rendered_context(self, fake_model, model_provider):
        fake_model.queue("ok")
        state = append_event("user_input", "hello", initialize_agent("be brief"))

        await ResponseGenerator(model_provider).generate(state, "openai:fake")

        messages = fake_model.calls[0]
        assert [m.role for m in messages] == [Role.SYSTEM, Role.USER]
        assert messages[0].content == "be brief"
        assert messages[1].content == render_context(state)

    @pytest.mark.asyncio
    async def test_reply_without_usage_keeps_totals(self, fake_model, model_provider):
        fake_model.queue("ok")
        state = add_usage(initialize_agent("sys"), TokenUsage(total_tokens=4))
        response = await ResponseGenerator(model_provider).generate(state)
        assert response.tokens is None
        assert response.state.usage.total_tokens == 4

    @pytest.mark.asyncio
    async def test_failure_appends_llm_error(self, fake_model, model_provider):
        fake_model.queue(LLMRateLimitError("rate limited", provider="openai"))
        state = append_event("user_input", "hello", initialize_agent("sys"))

        response = await ResponseGenerator(model_provider).generate(state, "openai:fake")

        assert response.content == "LLM call failed: rate limited"
        assert response.tokens is None
        last = response.state.events[-1]
        assert last.intent == "llm_error"
        assert last.content == "LLM call failed: rate limited"
        assert response.state.usage == state.usage

    @pytest.mark.asyncio
    async def test_unexpected_exception_contained(self, fake_model, model_provider):
        fake_model.queue(RuntimeError())
        response = await ResponseGenerator(model_provider).generate(initialize_agent("sys"))
        assert response.content == "LLM call failed: Unknown error"
