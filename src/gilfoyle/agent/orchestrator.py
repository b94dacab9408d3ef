"""
agent/orchestrator.py — Agent Orchestrator

Wires the core together. For each user turn the agent:
    1. Records the query as a user_input event
    2. Classifies it into tool intents   (IntentClassifier)
    3. Runs the intents in order         (ToolDispatcher)
    4. Asks the model for a reply        (ResponseGenerator)
    5. Returns {content, state, tokens}  (AgentResponse)

The agent owns no conversation state; callers pass a ThreadState in and
get a new one back. It does own its ModelProvider, so model clients are
cached per agent rather than per process.

Usage:
    agent = Agent(settings)
    state = agent.initialize()
    response = await agent.run_turn("calculate 15 * 23", state)
    print(response.content)
    state = response.state
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime
from typing import Optional

from gilfoyle.agent.classifier import IntentClassifier
from gilfoyle.agent.compactor import compact_conversation
from gilfoyle.agent.dispatcher import ToolDispatcher
from gilfoyle.agent.exporter import ExportFormat, export_conversation
from gilfoyle.agent.prompts import build_tool_catalog, default_system_prompt
from gilfoyle.agent.responder import ResponseGenerator
from gilfoyle.agent.state import (
    USER_INPUT,
    AgentResponse,
    ThreadState,
    append_event,
    initialize_agent,
)
from gilfoyle.brain.llm_client import LLMError, ModelProvider
from gilfoyle.observability.logger import bind_turn, clear_turn, get_logger
from gilfoyle.tools import build_default_registry
from gilfoyle.tools.tool_registry import ToolRegistry

log = get_logger(__name__)


class Agent:
    """
    Facade over the classifier, dispatcher, responder, compactor and exporter.

    Inject the model provider and registry in tests; both default to the
    real ones built from Settings.
    """

    def __init__(
        self,
        settings,
        model_provider: Optional[ModelProvider] = None,
        registry: Optional[ToolRegistry] = None,
    ):
        self.settings = settings
        # ModelProvider defines __len__, so an empty injected provider is falsy
        self.models = (
            model_provider if model_provider is not None else ModelProvider.from_settings(settings)
        )
        self.registry = registry if registry is not None else build_default_registry(settings)

        self._classifier = IntentClassifier(self.models, self.registry)
        self._dispatcher = ToolDispatcher(self.registry)
        self._responder = ResponseGenerator(self.models)

    @property
    def default_model(self) -> str:
        return self.settings.llm.default_model

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def initialize(self, system_prompt: Optional[str] = None) -> ThreadState:
        """
        Fresh conversation state.

        Prompt precedence: the explicit argument, then agent.system_prompt
        from config, then the built-in persona prompt for this registry.
        """
        if system_prompt is None:
            system_prompt = self.settings.agent.system_prompt
        if system_prompt is None:
            catalog = build_tool_catalog(self.registry.list_schemas())
            system_prompt = default_system_prompt(catalog, agent_name=self.settings.agent.name)
        return initialize_agent(system_prompt)

    async def run_turn(
        self,
        query: str,
        state: ThreadState,
        model_id: Optional[str] = None,
    ) -> AgentResponse:
        """Process one user query end to end. Never raises for model or tool failures."""
        model_id = model_id or self.default_model
        turn_id = f"turn_{uuid.uuid4().hex[:12]}"
        bind_turn(turn_id, model_id=model_id)
        t0 = time.monotonic()

        try:
            log.info("agent.turn_start", query=query[:120], events=len(state.events))

            state = append_event(USER_INPUT, query, state)
            intents = await self._classifier.classify(query, model_id)
            state = await self._dispatcher.execute_tools(intents, state)
            response = await self._responder.generate(state, model_id)

            log.info(
                "agent.turn_done",
                ms=round((time.monotonic() - t0) * 1000),
                events=len(response.state.events),
                total_tokens=response.state.usage.total_tokens,
            )
            return response
        finally:
            clear_turn()

    # ─────────────────────────────────────────────────────────────────────────
    # Maintenance
    # ─────────────────────────────────────────────────────────────────────────

    async def compact(self, state: ThreadState, model_id: Optional[str] = None) -> ThreadState:
        """Summarise long histories; returns the original state on any failure."""
        try:
            model = self.models.get(model_id or self.default_model)
        except LLMError as e:
            log.error("agent.compact_model_unavailable", error=str(e))
            return state
        return await compact_conversation(
            state,
            model,
            min_events=self.settings.compaction.min_events,
        )

    def export(
        self,
        state: ThreadState,
        fmt: Optional[str | ExportFormat] = None,
        now: Optional[datetime] = None,
    ) -> str:
        return export_conversation(state, fmt or self.settings.export.default_format, now=now)
