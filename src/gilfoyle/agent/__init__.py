from gilfoyle.agent.classifier import IntentClassifier, parse_intents
from gilfoyle.agent.compactor import compact_conversation
from gilfoyle.agent.dispatcher import ToolDispatcher
from gilfoyle.agent.exporter import ExportFormat, export_conversation, write_export
from gilfoyle.agent.orchestrator import Agent
from gilfoyle.agent.responder import ResponseGenerator
from gilfoyle.agent.state import (
    AgentResponse,
    Event,
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

__all__ = [
    "Agent",
    "AgentResponse",
    "Event",
    "ThreadState",
    "IntentClassifier",
    "ToolDispatcher",
    "ResponseGenerator",
    "ExportFormat",
    "parse_intents",
    "compact_conversation",
    "export_conversation",
    "write_export",
    "initialize_agent",
    "append_event",
    "update_system_message",
    "get_system_message",
    "parse_events",
    "get_latest_context",
    "add_usage",
    "render_context",
]
