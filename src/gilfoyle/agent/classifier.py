"""
agent/classifier.py — Intent Classifier

Turns a free-text query into a list of ToolIntents with a single model
call. The model is asked for a bare JSON array; whatever comes back is
treated as untrusted text and run through parse_intents(), which never
raises and falls back to [none] when nothing usable can be recovered.

Parsing steps:
  1. trim whitespace
  2. strip a leading ```json / ``` fence and its closing fence
  3. take the first balanced [...] run (brackets inside JSON strings ignored)
  4. json.loads
  5. coerce each element into a ToolIntent, dropping malformed ones
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from gilfoyle.agent.prompts import DEFAULT_TOOL_DESC, build_classify_prompt, build_tool_catalog
from gilfoyle.brain.llm_client import ModelProvider
from gilfoyle.brain.types import Message
from gilfoyle.observability.logger import get_logger
from gilfoyle.tools.tool_registry import ToolRegistry
from gilfoyle.tools.types import ToolIntent

log = get_logger(__name__)

_OPEN_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_CLOSE_FENCE = re.compile(r"\s*```$")


def _fallback() -> list[ToolIntent]:
    return [ToolIntent.none()]


# ─────────────────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────────────────


def strip_code_fence(text: str) -> str:
    if not text.startswith("```"):
        return text
    text = _OPEN_FENCE.sub("", text, count=1)
    return _CLOSE_FENCE.sub("", text, count=1)


def find_json_array(text: str) -> Optional[str]:
    """
    Return the first balanced [...] run in `text`, or None.

    Brackets that appear inside JSON string literals do not affect the depth.
    """
    start = text.find("[")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def _coerce(element: Any) -> Optional[ToolIntent]:
    if not isinstance(element, dict):
        return None
    intent = element.get("intent")
    if not isinstance(intent, str):
        return None
    args = element.get("args")
    if not isinstance(args, dict):
        args = {}
    return ToolIntent(intent=intent, args=args)


def parse_intents(content: Any) -> list[ToolIntent]:
    """
    Parse model output into ToolIntents. Never raises.

    A non-empty array with no usable element, or anything that is not a
    JSON array, yields [none]. An empty array yields [].
    """
    if not isinstance(content, str):
        return _fallback()

    text = strip_code_fence(content.strip())
    candidate = find_json_array(text)
    if candidate is not None:
        text = candidate

    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        log.warning("classifier.parse_failed", content=content[:500])
        return _fallback()

    if not isinstance(parsed, list):
        log.warning("classifier.not_an_array", kind=type(parsed).__name__)
        return _fallback()

    if not parsed:
        return []

    intents: list[ToolIntent] = []
    for element in parsed:
        intent = _coerce(element)
        if intent is None:
            log.warning("classifier.element_dropped", element=repr(element)[:200])
            continue
        intents.append(intent)

    return intents or _fallback()


# ─────────────────────────────────────────────────────────────────────────────
# Classifier
# ─────────────────────────────────────────────────────────────────────────────


class IntentClassifier:
    """
    Classifies a query into tool intents using one model call.

    Usage:
        classifier = IntentClassifier(model_provider, registry)
        intents = await classifier.classify("calculate 15 * 23", "openai:gpt-4.1-mini")
    """

    def __init__(self, model_provider: ModelProvider, registry: Optional[ToolRegistry] = None):
        self._models = model_provider
        self._registry = registry

    def tool_catalog(self) -> str:
        if self._registry is None or len(self._registry) == 0:
            return DEFAULT_TOOL_DESC
        return build_tool_catalog(self._registry.list_schemas())

    def build_prompt(self, query: str) -> str:
        return build_classify_prompt(query, self.tool_catalog())

    async def classify(self, query: str, model_id: Optional[str] = None) -> list[ToolIntent]:
        """Never raises: model failures and bad output both yield [none]."""
        prompt = self.build_prompt(query)
        try:
            model = self._models.get(model_id)
            reply = await model.invoke([Message.user(prompt)])
        except Exception as e:
            log.error(
                "classifier.model_failed",
                model_id=model_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return _fallback()

        intents = parse_intents(reply.content)
        log.info(
            "classifier.classified",
            model_id=model_id,
            intents=[i.intent for i in intents],
        )
        return intents
