"""
brain/__init__.py — Gilfoyle chat model layer
"""

from __future__ import annotations

from gilfoyle.brain.llm_client import (
    BaseChatModel,
    LLMConnectionError,
    LLMContextError,
    LLMError,
    LLMInvalidRequestError,
    LLMRateLimitError,
    ModelProvider,
    parse_model_id,
)
from gilfoyle.brain.types import (
    Message,
    ModelReply,
    ModelSettings,
    Provider,
    Role,
    TokenUsage,
)

__all__ = [
    "BaseChatModel",
    "ModelProvider",
    "parse_model_id",
    "LLMError",
    "LLMConnectionError",
    "LLMRateLimitError",
    "LLMContextError",
    "LLMInvalidRequestError",
    "Message",
    "ModelReply",
    "ModelSettings",
    "Provider",
    "Role",
    "TokenUsage",
]
