"""
brain/openai_client.py — OpenAI Chat Model

Works with the official OpenAI endpoint and any OpenAI-compatible server.
Handles usage extraction and error normalisation.
"""

from __future__ import annotations

from typing import Optional

import openai
from openai import AsyncOpenAI

from gilfoyle.brain.llm_client import (
    BaseChatModel,
    LLMConnectionError,
    LLMContextError,
    LLMError,
    LLMInvalidRequestError,
    LLMRateLimitError,
)
from gilfoyle.brain.types import Message, ModelReply, ModelSettings, Provider, TokenUsage
from gilfoyle.observability.logger import get_logger

log = get_logger(__name__)


class OpenAIChatModel(BaseChatModel):
    """OpenAI chat completions client."""

    provider = Provider.OPENAI

    def __init__(
        self,
        model: str,
        api_key: str,
        base_url: Optional[str] = None,     # None = official OpenAI endpoint
        settings: Optional[ModelSettings] = None,
    ):
        super().__init__(model=model, settings=settings)
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)

    # ── Public API ────────────────────────────────────────────────────────────

    async def invoke(self, messages: list[Message]) -> ModelReply:
        log.debug(
            "openai.invoke.start",
            model=self.model,
            message_count=len(messages),
        )

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=self._to_provider_messages(messages),
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
                timeout=self.settings.timeout_seconds,
            )
        except openai.AuthenticationError as e:
            raise LLMConnectionError(str(e), provider=self.provider.value, status_code=401) from e
        except openai.RateLimitError as e:
            raise LLMRateLimitError(str(e), provider=self.provider.value) from e
        except openai.BadRequestError as e:
            if "context" in str(e).lower() or "too long" in str(e).lower():
                raise LLMContextError(str(e), provider=self.provider.value) from e
            raise LLMInvalidRequestError(str(e), provider=self.provider.value) from e
        except openai.APIConnectionError as e:
            raise LLMConnectionError(str(e), provider=self.provider.value) from e
        except openai.APIError as e:
            raise LLMError(
                str(e),
                provider=self.provider.value,
                status_code=getattr(e, "status_code", None),
            ) from e

        reply = self._from_provider_response(response)
        log.debug(
            "openai.invoke.complete",
            model=reply.model,
            total_tokens=reply.usage.total_tokens if reply.usage else None,
        )
        return reply

    # ── Private helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _to_provider_messages(messages: list[Message]) -> list[dict]:
        return [{"role": m.role.value, "content": m.content} for m in messages]

    def _from_provider_response(self, response) -> ModelReply:
        if not response.choices:
            raise LLMError("Model returned no choices", provider=self.provider.value)

        content = response.choices[0].message.content or ""

        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return ModelReply(
            content=content,
            usage=usage,
            model=response.model or self.model,
        )
