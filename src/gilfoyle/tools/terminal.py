"""
tools/terminal.py — Terminal Tools

Runs shell commands for the agent in the current working directory.
Every command passes tools/safety.check_command() first, and the
subprocess never inherits secret-looking environment variables.

Registered tools:
  - pwd              → report the current working directory
  - terminal_command → run a shell command, capture output
"""

from __future__ import annotations

import asyncio
import os
import re
from typing import Optional

from gilfoyle.exceptions import CommandNotAllowedError, ToolError, ToolTimeoutError, ToolValidationError
from gilfoyle.observability.logger import get_logger
from gilfoyle.tools.safety import check_command
from gilfoyle.tools.tool_registry import ToolRegistry

log = get_logger(__name__)

# Any variable whose name matches one of these is stripped from the
# subprocess environment, so `printenv` cannot leak API keys.
_SECRET_ENV_PATTERNS: list[re.Pattern] = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"API[_-]?KEY",
        r"SECRET",
        r"PASSWORD",
        r"PASSWD",
        r"TOKEN",
        r"AUTH",
        r"CREDENTIAL",
        r"PRIVATE[_-]?KEY",
        r"ACCESS[_-]?KEY",
        r"OPENAI",
        r"TAVILY",
        r"DATABASE[_-]?URL",
        r"AWS[_-]",
        r"GCP[_-]",
        r"AZURE[_-]",
    ]
]


def safe_env() -> dict[str, str]:
    """Copy of os.environ with secret variables removed."""
    return {
        key: value
        for key, value in os.environ.items()
        if not any(pat.search(key) for pat in _SECRET_ENV_PATTERNS)
    }


def clamp_timeout(requested: Optional[int], default_ms: int, max_ms: int) -> int:
    """Requested timeout in ms, falling back to the default and capped at max."""
    if requested is None:
        return default_ms
    try:
        value = int(requested)
    except (TypeError, ValueError):
        return default_ms
    if value <= 0:
        return default_ms
    return min(value, max_ms)


def format_output(command: str, output: str, max_chars: int) -> str:
    if len(output) > max_chars:
        return (
            f"Command: {command}\n\n"
            f"Output (first {max_chars} characters):\n"
            f"{output[:max_chars]}\n\n"
            f"... [Output truncated - {len(output)} total characters]"
        )
    return f"Command: {command}\n\n{output}"


async def run_command(
    command: str,
    timeout_ms: int,
    max_output_chars: int,
    max_command_chars: int,
    cwd: Optional[str] = None,
) -> str:
    """
    Execute `command` through the shell and return formatted output.

    Raises:
        CommandNotAllowedError: the command matched a blocked pattern.
        ToolValidationError:    the command is empty or too long.
        ToolTimeoutError:       the command outlived `timeout_ms`.
        ToolError:              the command could not start or exited non-zero.
    """
    if not command.strip():
        raise ToolValidationError("Empty command is not permitted")

    allowed, reason = check_command(command)
    if not allowed:
        log.warning("terminal.command_blocked", command=command)
        raise CommandNotAllowedError(command, reason)

    if len(command) > max_command_chars:
        raise ToolValidationError(
            f"Command too long (maximum {max_command_chars} characters)"
        )

    try:
        proc = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd or os.getcwd(),
            env={**safe_env(), "PYTHONUNBUFFERED": "1"},
        )
    except OSError as e:
        raise ToolError(f'Error executing command "{command}": {e}') from e

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            proc.communicate(),
            timeout=timeout_ms / 1000,
        )
    except asyncio.TimeoutError:
        proc.kill()
        await proc.communicate()
        log.warning("terminal.command_timeout", command=command, timeout_ms=timeout_ms)
        raise ToolTimeoutError(f'Command timed out after {timeout_ms}ms: "{command}"')

    stdout = stdout_bytes.decode("utf-8", errors="replace")
    stderr = stderr_bytes.decode("utf-8", errors="replace")

    if proc.returncode != 0:
        if proc.returncode == 127:
            raise ToolError(f'Command not found: "{command}"')
        raise ToolError(
            f'Command failed with exit code {proc.returncode}: "{command}"\n'
            f"{stderr.strip() or stdout.strip()}"
        )

    log.debug("terminal.command_complete", command=command, chars=len(stdout))
    output = stdout or stderr or "Command completed (no output)"
    return format_output(command, output, max_output_chars)


# ─────────────────────────────────────────────────────────────────────────────
# Registration
# ─────────────────────────────────────────────────────────────────────────────


def register(registry: ToolRegistry, settings) -> None:
    cfg = settings.tools.terminal

    @registry.register(
        name="pwd",
        description="Get current working directory",
        label="pwd",
        category="system",
    )
    def pwd() -> str:
        return f"Current directory: {os.getcwd()}"

    @registry.register(
        name="terminal_command",
        description="Execute terminal commands",
        label="terminal command",
        category="terminal",
        parameters={
            "type": "object",
            "properties": {
                "command": {"type": "string", "description": "command to run"},
                "timeout": {"type": "integer", "description": "timeout in ms"},
            },
            "required": ["command"],
        },
    )
    async def terminal_command(command: str, timeout: Optional[int] = None) -> str:
        return await run_command(
            str(command),
            timeout_ms=clamp_timeout(timeout, cfg.default_timeout_ms, cfg.max_timeout_ms),
            max_output_chars=cfg.max_output_chars,
            max_command_chars=cfg.max_command_chars,
        )
