"""
tools/tool_registry.py — Tool Registry

Maps each implemented IntentKind to its ToolSchema and executor.
Executors are async (or plain) callables taking the validated arguments as
keyword arguments and returning text.

Usage:
    registry = ToolRegistry()

    @registry.register(
        name="pwd",
        description="Get the current working directory",
        category="system",
    )
    async def pwd() -> str:
        ...

    schema = registry.get_schema("pwd")
    handler = registry.get_handler("pwd")
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from gilfoyle.observability.logger import get_logger
from gilfoyle.tools.types import IMPLEMENTED_KINDS, IntentKind, ToolSchema

log = get_logger(__name__)

ToolHandler = Callable[..., Any]


class ToolRegistry:
    """
    Registry mapping tool names to schemas and handlers.

    Only tags from IntentKind's implemented set may be registered, so the
    classifier catalog and the dispatcher can never drift apart.
    """

    def __init__(self):
        self._schemas: dict[str, ToolSchema] = {}
        self._handlers: dict[str, ToolHandler] = {}

    def register(
        self,
        name: str,
        description: str,
        label: str = "",
        category: str = "general",
        parameters: Optional[dict[str, Any]] = None,
        enabled: bool = True,
    ) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator form of register_tool()."""
        def decorator(fn: ToolHandler) -> ToolHandler:
            schema = ToolSchema(
                name=name,
                description=description,
                label=label,
                category=category,
                parameters=parameters or {
                    "type": "object",
                    "properties": {},
                    "required": [],
                },
                enabled=enabled,
            )
            self.register_tool(schema, fn)
            return fn

        return decorator

    def register_tool(self, schema: ToolSchema, handler: ToolHandler) -> None:
        """Programmatic registration (alternative to the decorator)."""
        kind = IntentKind.lookup(schema.name)
        if kind not in IMPLEMENTED_KINDS:
            raise ValueError(
                f"'{schema.name}' is not an implementable tool intent. "
                f"Valid names: {sorted(k.value for k in IMPLEMENTED_KINDS)}"
            )
        self._schemas[schema.name] = schema
        self._handlers[schema.name] = handler
        log.debug("tool.registered", tool=schema.name, category=schema.category)

    def get_schema(self, name: str) -> Optional[ToolSchema]:
        return self._schemas.get(name)

    def get_handler(self, name: str) -> Optional[ToolHandler]:
        return self._handlers.get(name)

    def is_registered(self, name: str) -> bool:
        return name in self._schemas

    def list_schemas(self, enabled_only: bool = True) -> list[ToolSchema]:
        schemas = list(self._schemas.values())
        if enabled_only:
            schemas = [s for s in schemas if s.enabled]
        return schemas

    def list_names(self, enabled_only: bool = True) -> list[str]:
        return [s.name for s in self.list_schemas(enabled_only)]

    def missing_kinds(self) -> set[IntentKind]:
        """Implemented intent kinds with no registered executor."""
        return {k for k in IMPLEMENTED_KINDS if k.value not in self._handlers}

    def enable(self, name: str) -> None:
        if name in self._schemas:
            self._schemas[name].enabled = True

    def disable(self, name: str) -> None:
        if name in self._schemas:
            self._schemas[name].enabled = False

    def __len__(self) -> int:
        return len(self._schemas)

    def __repr__(self) -> str:
        return f"<ToolRegistry tools={list(self._schemas.keys())}>"
