"""
brain/types.py — Gilfoyle Brain Data Models

Shared types used by every chat model client and by the agent core.
Providers (OpenAI, Ollama) map their native response shapes into these.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Provider(str, Enum):
    OPENAI = "openai"
    OLLAMA = "ollama"


# ─────────────────────────────────────────────────────────────────────────────
# Messages
# ─────────────────────────────────────────────────────────────────────────────


class Message(BaseModel):
    """A single chat message sent to a model."""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=content)


# ─────────────────────────────────────────────────────────────────────────────
# Usage + reply
# ─────────────────────────────────────────────────────────────────────────────


class TokenUsage(BaseModel):
    """
    Token counts for one call, or the running total of a conversation.

    Counts are clamped to zero so adding a provider's report can never make
    a running total go down.
    """
    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @field_validator("prompt_tokens", "completion_tokens", "total_tokens", mode="before")
    @classmethod
    def _non_negative(cls, v: Optional[int]) -> int:
        if v is None:
            return 0
        return max(0, int(v))

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


class ModelReply(BaseModel):
    """Normalised reply from any chat model."""
    model_config = ConfigDict(frozen=True)

    content: str = ""
    usage: Optional[TokenUsage] = None
    model: str = ""                 # model id actually used, if reported


class ModelSettings(BaseModel):
    """Per-model request options resolved from Settings.llm."""
    temperature: float = 0.7
    max_tokens: int = 4096
    timeout_seconds: float = Field(default=60.0, gt=0)
