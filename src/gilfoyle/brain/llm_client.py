"""
brain/llm_client.py — Abstract Chat Model + Model Provider

Every provider implementation subclasses BaseChatModel and implements
invoke(). The agent never talks to an SDK directly.

ModelProvider is the memoized factory that turns an opaque model id
("openai:gpt-4.1-mini", "ollama:qwen3") into a BaseChatModel. One provider is
owned by each Agent; there is no module-level model cache.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

from gilfoyle.brain.types import Message, ModelReply, ModelSettings, Provider
from gilfoyle.observability.logger import get_logger

log = get_logger(__name__)


class BaseChatModel(ABC):
    """
    Abstract base for all chat model clients.

    Subclasses must implement invoke(), which sends the message list to the
    model and returns a normalised ModelReply. Provider failures are raised
    as LLMError subclasses, never as SDK exceptions.
    """

    provider: Provider = Provider.OPENAI

    def __init__(self, model: str, settings: Optional[ModelSettings] = None):
        self.model = model
        self.settings = settings or ModelSettings()

    @abstractmethod
    async def invoke(self, messages: list[Message]) -> ModelReply:
        """Call the model once and return its reply."""
        ...

    @property
    def model_id(self) -> str:
        return f"{self.provider.value}:{self.model}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} model={self.model_id}>"


# ─────────────────────────────────────────────────────────────────────────────
# Model ids
# ─────────────────────────────────────────────────────────────────────────────


def parse_model_id(model_id: str) -> tuple[Provider, str]:
    """
    Split "provider:model" into its parts.

    A bare model name is treated as an OpenAI model, matching how the
    OpenAI SDK names its models.
    """
    raw = (model_id or "").strip()
    if not raw:
        raise LLMInvalidRequestError("Model id must be a non-empty string")

    if ":" not in raw:
        return Provider.OPENAI, raw

    prefix, _, name = raw.partition(":")
    try:
        provider = Provider(prefix.lower())
    except ValueError:
        # Ollama tags look like "qwen3:8b"; anything unknown before the colon
        # is part of the model name, not a provider.
        return Provider.OPENAI, raw
    if not name:
        raise LLMInvalidRequestError(f"Model id '{model_id}' has no model name", provider=prefix)
    return provider, name


# ─────────────────────────────────────────────────────────────────────────────
# ModelProvider — memoized factory keyed by model id
# ─────────────────────────────────────────────────────────────────────────────

ModelBuilder = Callable[[Provider, str], BaseChatModel]


class ModelProvider:
    """
    Resolves model ids to chat model clients, building each at most once.

    Usage:
        provider = ModelProvider.from_settings(settings)
        model = provider.get("openai:gpt-4.1-mini")
        reply = await model.invoke([Message.user("hi")])
    """

    def __init__(self, builder: ModelBuilder, default_model: str):
        self._builder = builder
        self._default_model = default_model
        self._cache: dict[str, BaseChatModel] = {}

    @property
    def default_model(self) -> str:
        return self._default_model

    def get(self, model_id: Optional[str] = None) -> BaseChatModel:
        key = (model_id or self._default_model).strip()
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        provider, name = parse_model_id(key)
        model = self._builder(provider, name)
        self._cache[key] = model
        log.debug("model_provider.built", model_id=key, client=repr(model))
        return model

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    @classmethod
    def from_settings(cls, settings) -> "ModelProvider":
        """Build a provider whose clients are configured from Settings."""
        model_settings = ModelSettings(
            temperature=settings.llm.temperature,
            max_tokens=settings.llm.max_tokens,
            timeout_seconds=settings.llm.timeout_seconds,
        )

        def _build(provider: Provider, name: str) -> BaseChatModel:
            if provider == Provider.OPENAI:
                if not settings.openai_api_key:
                    raise LLMConnectionError("OPENAI_API_KEY is required", provider="openai")
                from gilfoyle.brain.openai_client import OpenAIChatModel
                return OpenAIChatModel(
                    model=name,
                    api_key=settings.openai_api_key,
                    base_url=settings.openai_base_url,
                    settings=model_settings,
                )
            if provider == Provider.OLLAMA:
                from gilfoyle.brain.ollama_client import OllamaChatModel
                return OllamaChatModel(
                    model=name,
                    base_url=settings.ollama_base_url_v1,
                    settings=model_settings,
                )
            raise ValueError(f"Unsupported model provider: {provider}")

        return cls(builder=_build, default_model=settings.llm.default_model)


# ─────────────────────────────────────────────────────────────────────────────
# Exceptions
# ─────────────────────────────────────────────────────────────────────────────


class LLMError(Exception):
    """Base exception for all chat model errors."""
    def __init__(self, message: str, provider: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class LLMConnectionError(LLMError):
    """Provider unreachable or authentication failed."""


class LLMRateLimitError(LLMError):
    """Rate limit hit."""
    def __init__(self, message: str, provider: str = "", retry_after: Optional[float] = None):
        super().__init__(message, provider)
        self.retry_after = retry_after


class LLMContextError(LLMError):
    """Input exceeds model context window."""


class LLMInvalidRequestError(LLMError):
    """Bad request — invalid parameters or unknown model."""
