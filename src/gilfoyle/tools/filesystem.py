"""
tools/filesystem.py — Filesystem Tools

Lets the agent find, read and create files relative to the working
directory. Credential-looking paths (see tools/safety.py) are never read
and never listed.

Registered tools:
  - file_search  → recursive filename substring search
  - read_file    → read a text file (truncated for the model)
  - create_file  → write a text file, overwriting if present
"""

from __future__ import annotations

import os
from pathlib import Path

from gilfoyle.exceptions import FileAccessDeniedError, ToolError
from gilfoyle.observability.logger import get_logger
from gilfoyle.tools.safety import is_blocked_file
from gilfoyle.tools.tool_registry import ToolRegistry

log = get_logger(__name__)

_SKIP_DIRS = {"node_modules"}


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


def search_files(directory: str, pattern: str) -> list[str]:
    """
    Walk `directory` and return every file whose name contains `pattern`.

    Hidden directories and node_modules are not descended into; directories
    that cannot be read are skipped silently.
    """
    results: list[str] = []
    try:
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError:
        return results

    for entry in entries:
        full_path = os.path.join(directory, entry.name)
        try:
            if entry.is_dir(follow_symlinks=False):
                if not entry.name.startswith(".") and entry.name not in _SKIP_DIRS:
                    results.extend(search_files(full_path, pattern))
            elif entry.is_file() and pattern in entry.name:
                results.append(full_path)
        except OSError:
            continue
    return results


def read_text(filepath: str, max_chars: int) -> str:
    if is_blocked_file(filepath):
        raise FileAccessDeniedError(
            filepath,
            f'Error reading file "{filepath}": Access denied. '
            f"This file contains sensitive information.",
        )
    try:
        content = Path(filepath).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        reason = getattr(e, "strerror", None) or str(e)
        raise ToolError(f'Error reading file "{filepath}": {reason}') from e

    if len(content) > max_chars:
        return (
            f"File content (first {max_chars} characters):\n\n"
            f"{content[:max_chars]}...\n\n"
            f"[File truncated - {len(content)} total characters]"
        )
    return f"File content:\n\n{content}"


def write_text(filepath: str, content: str) -> str:
    try:
        Path(filepath).write_text(content, encoding="utf-8")
    except OSError as e:
        raise ToolError(f'Error creating file "{filepath}": {e.strerror or e}') from e
    log.info("filesystem.file_created", path=filepath, chars=len(content))
    return f'Successfully created file "{filepath}" with {len(content)} characters.'


def format_search(pattern: str, directory: str, files: list[str], max_results: int) -> str:
    allowed = [f for f in files if not is_blocked_file(f)]
    excluded = len(files) - len(allowed)

    if not allowed:
        if excluded:
            return (
                f'No accessible files found matching pattern "{pattern}" in directory '
                f'"{directory}". Some files were excluded for security reasons.'
            )
        return f'No files found matching pattern "{pattern}" in directory "{directory}".'

    lines = [f'Found {len(allowed)} files matching "{pattern}":']
    lines.extend(f"- {f}" for f in allowed[:max_results])
    text = "\n".join(lines)
    if len(allowed) > max_results:
        text += f"\n... and {len(allowed) - max_results} more"
    if excluded:
        text += f"\n\n[Note: {excluded} files were excluded for security reasons]"
    return text


# ─────────────────────────────────────────────────────────────────────────────
# Registration
# ─────────────────────────────────────────────────────────────────────────────


def register(registry: ToolRegistry, settings) -> None:
    cfg = settings.tools.filesystem

    @registry.register(
        name="file_search",
        description="Search for files by name pattern",
        label="file search",
        category="filesystem",
        parameters={
            "type": "object",
            "properties": {
                "pattern": {"type": "string", "description": "filename"},
                "directory": {"type": "string", "description": "path", "default": "."},
            },
            "required": ["pattern"],
        },
    )
    async def file_search(pattern: str, directory: str = ".") -> str:
        directory = directory or "."
        files = search_files(directory, str(pattern))
        log.debug("filesystem.search", pattern=pattern, directory=directory, hits=len(files))
        return format_search(str(pattern), directory, files, cfg.search_max_results)

    @registry.register(
        name="read_file",
        description="Read file contents",
        label="read file",
        category="filesystem",
        parameters={
            "type": "object",
            "properties": {
                "filepath": {"type": "string", "description": "path/to/file"},
            },
            "required": ["filepath"],
        },
    )
    async def read_file(filepath: str) -> str:
        return read_text(str(filepath), cfg.read_max_chars)

    @registry.register(
        name="create_file",
        description="Create a new file",
        label="create file",
        category="filesystem",
        parameters={
            "type": "object",
            "properties": {
                "filepath": {"type": "string", "description": "path/to/file"},
                "content": {"type": "string", "description": "file content"},
            },
            "required": ["filepath", "content"],
        },
    )
    async def create_file(filepath: str, content: str) -> str:
        return write_text(str(filepath), str(content))
