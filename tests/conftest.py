"""
Test conftest — isolate environment variables so Settings() behaves as if
no keys or config files are present unless a test provides them, and
provide a scripted chat model for deterministic model replies.
"""
from __future__ import annotations

from typing import Union

import pytest

from gilfoyle.brain.llm_client import BaseChatModel, ModelProvider
from gilfoyle.brain.types import Message, ModelReply, TokenUsage

_ENV_VARS = [
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "TAVILY_API_KEY",
    "OLLAMA_BASE_URL",
    "GILFOYLE_CONFIG",
    "LLM__DEFAULT_MODEL",
]


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Remove key env vars for every test and disable .env file loading."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    # Point the default config lookup at an empty temp dir
    monkeypatch.setenv("GILFOYLE_CONFIG", str(tmp_path / "missing-config.yaml"))

    import gilfoyle.config.settings as settings_module
    from pydantic_settings import SettingsConfigDict
    patched_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )
    monkeypatch.setattr(settings_module.Settings, "model_config", patched_config)


# ─────────────────────────────────────────────────────────────────────────────
# Scripted chat model
# ─────────────────────────────────────────────────────────────────────────────

Scripted = Union[str, ModelReply, BaseException]


class FakeChatModel(BaseChatModel):
    """
    Returns queued replies in order. A queued exception is raised instead
    of returned. Every call's message list is kept in `calls`.
    """

    def __init__(self, replies: list[Scripted] | None = None, model: str = "fake"):
        super().__init__(model=model)
        self.replies: list[Scripted] = list(replies or [])
        self.calls: list[list[Message]] = []

    def queue(self, *replies: Scripted) -> None:
        self.replies.extend(replies)

    async def invoke(self, messages: list[Message]) -> ModelReply:
        self.calls.append(list(messages))
        if not self.replies:
            raise AssertionError("FakeChatModel ran out of scripted replies")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, str):
            return ModelReply(content=reply, usage=None, model=self.model)
        return reply


def reply(content: str, prompt: int = 0, completion: int = 0, total: int | None = None) -> ModelReply:
    total = prompt + completion if total is None else total
    return ModelReply(
        content=content,
        usage=TokenUsage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total),
        model="fake",
    )


@pytest.fixture
def make_reply():
    return reply


@pytest.fixture
def fake_model() -> FakeChatModel:
    return FakeChatModel()


@pytest.fixture
def model_provider(fake_model) -> ModelProvider:
    """Provider that resolves every model id to the same fake model."""
    return ModelProvider(builder=lambda provider, name: fake_model, default_model="openai:fake")


@pytest.fixture
def settings():
    from gilfoyle.config.settings import Settings
    return Settings()
