"""
tests/unit/test_brain.py — Chat Model Layer Tests

Tests model id parsing, the memoizing ModelProvider, token usage
arithmetic and the OpenAI client's response/error mapping. The OpenAI SDK
is never called; its client is replaced with mocks.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from gilfoyle.brain.llm_client import (
    LLMConnectionError,
    LLMError,
    LLMInvalidRequestError,
    ModelProvider,
    parse_model_id,
)
from gilfoyle.brain.ollama_client import OllamaChatModel
from gilfoyle.brain.openai_client import OpenAIChatModel
from gilfoyle.brain.types import Message, ModelSettings, Provider, TokenUsage
from gilfoyle.config.settings import Settings


# ─────────────────────────────────────────────────────────────────────────────
# Model ids
# ─────────────────────────────────────────────────────────────────────────────


class TestParseModelId:
    @pytest.mark.parametrize("model_id, expected", [
        ("openai:gpt-4.1-mini", (Provider.OPENAI, "gpt-4.1-mini")),
        ("OpenAI:gpt-4o", (Provider.OPENAI, "gpt-4o")),
        ("ollama:qwen3", (Provider.OLLAMA, "qwen3")),
        ("ollama:qwen3:8b", (Provider.OLLAMA, "qwen3:8b")),
        ("gpt-4o", (Provider.OPENAI, "gpt-4o")),
        ("qwen3:8b", (Provider.OPENAI, "qwen3:8b")),
        ("  ollama:llama3  ", (Provider.OLLAMA, "llama3")),
    ])
    def test_parses(self, model_id, expected):
        assert parse_model_id(model_id) == expected

    @pytest.mark.parametrize("model_id", ["", "   ", "ollama:"])
    def test_rejects(self, model_id):
        with pytest.raises(LLMInvalidRequestError):
            parse_model_id(model_id)


# ─────────────────────────────────────────────────────────────────────────────
# ModelProvider
# ─────────────────────────────────────────────────────────────────────────────


class TestModelProvider:
    def test_memoizes_per_model_id(self):
        builder = MagicMock(side_effect=lambda provider, name: MagicMock(name=name))
        provider = ModelProvider(builder=builder, default_model="openai:a")

        first = provider.get("openai:a")
        assert provider.get("openai:a") is first
        assert provider.get() is first
        assert provider.get("ollama:b") is not first
        assert builder.call_count == 2
        assert len(provider) == 2

    def test_clear(self):
        builder = MagicMock(side_effect=lambda provider, name: MagicMock())
        provider = ModelProvider(builder=builder, default_model="openai:a")
        first = provider.get()
        provider.clear()
        assert len(provider) == 0
        assert provider.get() is not first

    def test_failed_build_not_cached(self):
        builder = MagicMock(side_effect=[LLMConnectionError("no key"), MagicMock()])
        provider = ModelProvider(builder=builder, default_model="openai:a")
        with pytest.raises(LLMConnectionError):
            provider.get()
        provider.get()
        assert builder.call_count == 2

    def test_from_settings_openai_without_key(self):
        provider = ModelProvider.from_settings(Settings())
        with pytest.raises(LLMConnectionError, match="OPENAI_API_KEY"):
            provider.get("openai:gpt-4.1-mini")

    def test_from_settings_openai(self):
        provider = ModelProvider.from_settings(
            Settings(OPENAI_API_KEY="sk-test", llm={"temperature": 0.2, "max_tokens": 256})
        )
        model = provider.get()
        assert isinstance(model, OpenAIChatModel)
        assert model.model_id == "openai:gpt-4.1-mini"
        assert model.settings.temperature == 0.2
        assert model.settings.max_tokens == 256

    def test_from_settings_ollama(self):
        provider = ModelProvider.from_settings(Settings(OLLAMA_BASE_URL="http://gpu-box:11434"))
        model = provider.get("ollama:qwen3")
        assert isinstance(model, OllamaChatModel)
        assert model.model_id == "ollama:qwen3"
        assert model.base_url == "http://gpu-box:11434/v1"


# ─────────────────────────────────────────────────────────────────────────────
# TokenUsage
# ─────────────────────────────────────────────────────────────────────────────


class TestTokenUsage:
    def test_add(self):
        total = TokenUsage(prompt_tokens=1, completion_tokens=2, total_tokens=3) + TokenUsage(
            prompt_tokens=10, completion_tokens=20, total_tokens=30
        )
        assert total == TokenUsage(prompt_tokens=11, completion_tokens=22, total_tokens=33)

    def test_negative_and_missing_clamped(self):
        usage = TokenUsage(prompt_tokens=-5, completion_tokens=None, total_tokens=4)
        assert usage == TokenUsage(prompt_tokens=0, completion_tokens=0, total_tokens=4)


# ─────────────────────────────────────────────────────────────────────────────
# OpenAIChatModel
# ─────────────────────────────────────────────────────────────────────────────


def _completion(content="hello", usage=(3, 4, 7), model="gpt-4.1-mini-2025"):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.model = model
    if usage is None:
        response.usage = None
    else:
        response.usage = MagicMock(prompt_tokens=usage[0], completion_tokens=usage[1], total_tokens=usage[2])
    return response


@pytest.fixture
def openai_model():
    model = OpenAIChatModel(
        model="gpt-4.1-mini",
        api_key="sk-test",
        settings=ModelSettings(temperature=0.1, max_tokens=50, timeout_seconds=5),
    )
    model._client = MagicMock()
    model._client.chat.completions.create = AsyncMock(return_value=_completion())
    return model


class TestOpenAIChatModel:
    @pytest.mark.asyncio
    async def test_invoke_maps_reply(self, openai_model):
        reply = await openai_model.invoke([Message.system("sys"), Message.user("hi")])

        assert reply.content == "hello"
        assert reply.usage == TokenUsage(prompt_tokens=3, completion_tokens=4, total_tokens=7)
        assert reply.model == "gpt-4.1-mini-2025"

        kwargs = openai_model._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4.1-mini"
        assert kwargs["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hi"},
        ]
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 50

    def test_missing_usage(self, openai_model):
        reply = openai_model._from_provider_response(_completion(usage=None))
        assert reply.usage is None

    def test_null_content(self, openai_model):
        assert openai_model._from_provider_response(_completion(content=None)).content == ""

    def test_no_choices(self, openai_model):
        response = _completion()
        response.choices = []
        with pytest.raises(LLMError, match="no choices"):
            openai_model._from_provider_response(response)

    @pytest.mark.asyncio
    async def test_connection_error_mapped(self, openai_model):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        openai_model._client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=request)
        )
        with pytest.raises(LLMConnectionError) as exc_info:
            await openai_model.invoke([Message.user("hi")])
        assert exc_info.value.provider == "openai"

    @pytest.mark.asyncio
    async def test_ollama_unreachable_message(self):
        model = OllamaChatModel(model="qwen3", base_url="http://localhost:11434/v1")
        request = httpx.Request("POST", "http://localhost:11434/v1/chat/completions")
        model._client = MagicMock()
        model._client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=request)
        )
        with pytest.raises(LLMConnectionError, match="Cannot reach Ollama at http://localhost:11434/v1"):
            await model.invoke([Message.user("hi")])
