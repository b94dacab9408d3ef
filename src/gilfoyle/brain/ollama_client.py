"""
brain/ollama_client.py — Ollama Local Chat Model

Ollama exposes an OpenAI-compatible endpoint at /v1/, so this reuses the
OpenAI client pointed at localhost. No API key required.
"""

from __future__ import annotations

from typing import Optional

from gilfoyle.brain.llm_client import LLMConnectionError
from gilfoyle.brain.openai_client import OpenAIChatModel
from gilfoyle.brain.types import Message, ModelReply, ModelSettings, Provider
from gilfoyle.observability.logger import get_logger

log = get_logger(__name__)

_DEFAULT_BASE_URL = "http://localhost:11434/v1"


class OllamaChatModel(OpenAIChatModel):
    """Runs local models through Ollama's OpenAI-compatible API."""

    provider = Provider.OLLAMA

    def __init__(
        self,
        model: str,
        base_url: str = _DEFAULT_BASE_URL,
        settings: Optional[ModelSettings] = None,
    ):
        super().__init__(model=model, api_key="ollama", base_url=base_url, settings=settings)
        self.base_url = base_url

    async def invoke(self, messages: list[Message]) -> ModelReply:
        try:
            return await super().invoke(messages)
        except LLMConnectionError as e:
            log.warning("ollama.unreachable", base_url=self.base_url, error=str(e))
            raise LLMConnectionError(
                f"Cannot reach Ollama at {self.base_url}. Is `ollama serve` running?",
                provider=self.provider.value,
            ) from e
