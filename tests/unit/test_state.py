"""
tests/unit/test_state.py — Conversation State Tests

Covers:
  - initialize_agent defaults and explicit prompts
  - append_event purity, args attachment, metadata copying
  - system message fallback and update
  - usage accumulation (never replaces, negatives clamp)
  - render_context markup
"""

from __future__ import annotations

import pytest

from gilfoyle.agent.prompts import FALLBACK_SYSTEM_PROMPT
from gilfoyle.agent.state import (
    ThreadState,
    add_usage,
    append_event,
    get_latest_context,
    get_system_message,
    initialize_agent,
    parse_events,
    render_context,
    update_system_message,
)
from gilfoyle.brain.types import TokenUsage
from gilfoyle.tools.types import ToolIntent, event_status


class TestInitializeAgent:
    def test_empty_state_with_default_prompt(self):
        state = initialize_agent()
        assert state.events == ()
        assert state.usage == TokenUsage()
        assert state.system_message.startswith("Persona:")
        assert "Gilfoyle" in state.system_message

    def test_explicit_prompt(self):
        state = initialize_agent("be terse")
        assert state.system_message == "be terse"

    def test_empty_string_counts_as_given(self):
        state = initialize_agent("")
        assert state.system_message == ""
        assert get_system_message(state) == FALLBACK_SYSTEM_PROMPT


class TestAppendEvent:
    def test_returns_new_state_and_leaves_input_untouched(self):
        s0 = initialize_agent("sys")
        s1 = append_event("user_input", "hello", s0)
        assert len(s0.events) == 0
        assert len(s1.events) == 1
        assert s1.events[0].intent == "user_input"
        assert s1.events[0].content == "hello"
        assert s1.events[0].args is None
        assert s1.events[0].metadata == {}

    def test_preserves_order(self):
        state = initialize_agent("sys")
        for i in range(4):
            state = append_event("user_input", f"m{i}", state)
        assert [e.content for e in state.events] == ["m0", "m1", "m2", "m3"]

    def test_tool_intent_args_attached(self):
        intent = ToolIntent(intent="math_calculator", args={"expression": "1 + 1"})
        state = append_event(intent, "1 + 1 = 2", initialize_agent("sys"))
        assert state.events[0].intent == "math_calculator"
        assert state.events[0].args == {"expression": "1 + 1"}

    def test_conversational_tool_intent_gets_no_args(self):
        intent = ToolIntent(intent="user_input", args={"x": 1})
        state = append_event(intent, "hi", initialize_agent("sys"))
        assert state.events[0].args is None

    def test_metadata_copied(self):
        meta = {"status": "success"}
        state = append_event("pwd", "ok", initialize_agent("sys"), meta)
        meta["status"] = "tampered"
        assert state.events[0].metadata == {"status": "success"}

    def test_args_copied(self):
        args = {"command": "ls"}
        state = append_event(ToolIntent(intent="terminal_command", args=args), "out", initialize_agent("sys"))
        args["command"] = "rm"
        assert state.events[0].args == {"command": "ls"}

    def test_usage_and_system_message_carry_over(self):
        s0 = add_usage(initialize_agent("sys"), TokenUsage(total_tokens=7))
        s1 = append_event("user_input", "x", s0)
        assert s1.usage.total_tokens == 7
        assert s1.system_message == "sys"

    def test_state_is_frozen(self):
        state = initialize_agent("sys")
        with pytest.raises(Exception):
            state.system_message = "other"


class TestSystemMessage:
    def test_fallback_when_unset(self):
        assert get_system_message(ThreadState()) == "You are a helpful AI assistant."

    def test_update(self):
        s0 = initialize_agent("a")
        s1 = update_system_message(s0, "b")
        assert get_system_message(s1) == "b"
        assert get_system_message(s0) == "a"


class TestUsage:
    def test_adds_onto_totals(self):
        state = initialize_agent("sys")
        state = add_usage(state, TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15))
        state = add_usage(state, {"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3})
        assert state.usage == TokenUsage(prompt_tokens=11, completion_tokens=7, total_tokens=18)

    def test_negative_counts_treated_as_zero(self):
        state = add_usage(initialize_agent("sys"), TokenUsage(total_tokens=10))
        state = add_usage(state, {"prompt_tokens": -5, "total_tokens": -100})
        assert state.usage.total_tokens == 10
        assert state.usage.prompt_tokens == 0

    def test_none_is_noop(self):
        state = initialize_agent("sys")
        assert add_usage(state, None) is state


class TestParseAndContext:
    def test_parse_events(self):
        state = append_event("user_input", "hi", initialize_agent("sys"), {"x": 1})
        assert parse_events(state) == [{"intent": "user_input", "content": "hi"}]

    def test_latest_context_last_three(self):
        state = initialize_agent("sys")
        for i in range(5):
            state = append_event("user_input", f"m{i}", state)
        assert get_latest_context(state) == "user_input: m2\nuser_input: m3\nuser_input: m4"

    def test_latest_context_empty(self):
        assert get_latest_context(initialize_agent("sys")) == ""


class TestRenderContext:
    def test_empty(self):
        assert render_context(initialize_agent("sys")) == "<thread>\n\n</thread>"

    def test_single_event(self):
        state = append_event("user_input", "hello", initialize_agent("sys"))
        assert render_context(state) == '<thread>\n<event intent="user_input">hello</event>\n</thread>'

    def test_metadata_attributes_in_order_and_joined(self):
        state = append_event("user_input", "hi", initialize_agent("sys"))
        state = append_event("pwd", "Current directory: /x", state, event_status("success"))
        assert render_context(state) == (
            "<thread>\n"
            '<event intent="user_input">hi</event>\n'
            '  <event intent="pwd" icon="✅" status="success">Current directory: /x</event>\n'
            "</thread>"
        )

    def test_none_values_skipped_and_bools_lowercase(self):
        state = append_event("x", "c", initialize_agent("sys"), {"a": None, "b": True, "c": False, "n": 3})
        assert render_context(state) == (
            '<thread>\n<event intent="x" b="true" c="false" n="3">c</event>\n</thread>'
        )

    def test_content_not_escaped(self):
        state = append_event("user_input", "<b>&</b>", initialize_agent("sys"))
        assert "<b>&</b></event>" in render_context(state)

    def test_deterministic(self):
        state = append_event("pwd", "x", initialize_agent("sys"), event_status("error"))
        assert render_context(state) == render_context(state)
