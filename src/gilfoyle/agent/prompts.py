"""
agent/prompts.py — Prompt Templates

Every prompt string the agent sends to a model lives here: the persona
system prompt, the intent-classification prompt (tool catalog plus worked
examples) and the compaction prompts.

The tool catalog is generated from the registry's schemas so the
classifier always describes exactly the tools the dispatcher can run.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Iterable, Optional

from gilfoyle.tools.types import ToolSchema

FALLBACK_SYSTEM_PROMPT = "You are a helpful AI assistant."

DEFAULT_TOOL_DESC = """Available tools:
1. "web_search" - for general information searches (args: {"query": "search terms"})
2. "math_calculator" - for mathematical calculations (args: {"expression": "math expression"})
3. "file_search" - search for files by pattern (args: {"pattern": "filename", "directory": "path"})
4. "read_file" - read file contents (args: {"filepath": "path/to/file"})
5. "create_file" - create a new file (args: {"filepath": "path/to/file", "content": "file content"})
6. "git_status" - check git repository status (args: {})
7. "pwd" - get current working directory (args: {})
8. "terminal_command" - execute terminal commands (args: {"command": "command to run", "timeout": optional_timeout_ms})"""

_EXAMPLES = """If no tools are needed, return: [{"intent": "none", "args": {}}]

Examples:
- "calculate 15 * 23" → [{"intent": "math_calculator", "args": {"expression": "15 * 23"}}]
- "search for latest AI news" → [{"intent": "web_search", "args": {"query": "latest AI news"}}]
- "find all .ts files" → [{"intent": "file_search", "args": {"pattern": ".ts", "directory": "."}}]
- "read package.json" → [{"intent": "read_file", "args": {"filepath": "package.json"}}]
- "create a README file" → [{"intent": "create_file", "args": {"filepath": "README.md", "content": "# Project Title\\n\\nDescription here."}}]
- "check git status" → [{"intent": "git_status", "args": {}}]
- "where am I" → [{"intent": "pwd", "args": {}}]
- "run ls -la" → [{"intent": "terminal_command", "args": {"command": "ls -la"}}]
- "what's the latest version of react" → [{"intent": "npm_info", "args": {"package": "react"}}]
"""

_CLASSIFY_TEMPLATE = """Analyze the following user query and identify if any tools should be executed. Return a JSON array of tool intents.

{tool_prompt}

User query: "{query}"

Respond with only the JSON array, no additional text."""

_PERSONA_TEMPLATE = """Persona:
- You are {agent_name}, an AI development assistant.
- You are helpful, knowledgeable about programming, and can assist with various development tasks.
- You have access to tools for elite level development tasks.
- Be concise but thorough in your responses.

{tool_desc}

System Time: {system_time}
Language: {language}
"""

COMPACTION_SYSTEM_PROMPT = (
    "You are a helpful assistant that creates concise summaries of conversations."
)

_COMPACTION_TEMPLATE = (
    "Summarize the following conversation while preserving key information, "
    "decisions made, and important context. Be concise but ensure no critical "
    "information is lost:\n\n{conversation}"
)


# ─────────────────────────────────────────────────────────────────────────────
# Builders
# ─────────────────────────────────────────────────────────────────────────────


def build_tool_catalog(schemas: Iterable[ToolSchema]) -> str:
    """Numbered 'Available tools:' list with an args hint per tool."""
    lines = ["Available tools:"]
    for i, schema in enumerate(schemas, start=1):
        hint = json.dumps(schema.args_hint(), ensure_ascii=False)
        lines.append(f'{i}. "{schema.name}" - {schema.description} (args: {hint})')
    return "\n".join(lines)


def build_classify_prompt(query: str, tool_desc: str = DEFAULT_TOOL_DESC) -> str:
    tool_prompt = f"{tool_desc}\n\n{_EXAMPLES}"
    return _CLASSIFY_TEMPLATE.format(tool_prompt=tool_prompt, query=query)


def default_system_prompt(
    tool_desc: str = DEFAULT_TOOL_DESC,
    agent_name: str = "Gilfoyle",
    now: Optional[datetime] = None,
) -> str:
    """Persona prompt stamped with the current time and locale."""
    now = now or datetime.now(timezone.utc)
    return _PERSONA_TEMPLATE.format(
        agent_name=agent_name,
        tool_desc=tool_desc,
        system_time=now.isoformat(),
        language=os.environ.get("LANG") or "en_US.UTF-8",
    )


def build_compaction_prompt(conversation: str) -> str:
    return _COMPACTION_TEMPLATE.format(conversation=conversation)
