"""
interfaces/cli.py — Gilfoyle CLI Interface

Line-oriented REPL over the Agent. Uses rich for rendering; all agent
logic lives in gilfoyle.agent and this module only calls it.

Commands:
  /init, /compact, /export [markdown|json|txt], /usage, /clear,
  /system [prompt], /help, /exit

Usage:
    gilfoyle
    gilfoyle --model ollama:qwen3 --log-level DEBUG
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich import box

from gilfoyle.agent.exporter import write_export
from gilfoyle.agent.orchestrator import Agent
from gilfoyle.agent.state import AgentResponse, ThreadState, get_system_message, update_system_message
from gilfoyle.config.settings import DEFAULT_CONFIG_PATH, Settings
from gilfoyle.exceptions import ExportFormatError, GilfoyleError
from gilfoyle.observability.logger import get_logger

log = get_logger(__name__)

AGENTS_FILE = "AGENTS.md"

_HELP_TEXT = """
## Gilfoyle Commands

| Command | Description |
|---------|-------------|
| `/init` | Start a fresh conversation and write `AGENTS.md` |
| `/compact` | Summarise a long conversation into one event |
| `/export [markdown\\|json\\|txt]` | Write the conversation to a file |
| `/usage` | Show token usage for this conversation |
| `/clear` | Clear the conversation |
| `/system [prompt]` | Show or replace the system prompt |
| `/help` | Show this help message |
| `/exit` / Ctrl+D | Exit Gilfoyle |

Just type a message to talk to the agent.
"""


# ─────────────────────────────────────────────────────────────────────────────
# AGENTS.md
# ─────────────────────────────────────────────────────────────────────────────


def render_agents_md(settings: Settings, model_id: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    config_file = settings.config_path or str(DEFAULT_CONFIG_PATH.expanduser())
    return (
        "# AI Agent Configuration\n\n"
        "## System Information\n"
        f"- **Agent Name**: {settings.agent.name}\n"
        f"- **Version**: {settings.agent.version}\n"
        f"- **Selected Model**: {model_id}\n"
        f"- **Initialized**: {now.isoformat()}\n\n"
        "## Configuration\n"
        f"- **Config File**: {config_file}\n\n"
        "## Usage\n"
        "- Type a message to start a conversation with the agent\n"
        "- Use `/help` to list commands\n\n"
        "Agent is ready for interaction!\n"
    )


def write_agents_md(
    settings: Settings,
    model_id: str,
    directory: str | Path = ".",
    now: Optional[datetime] = None,
) -> Path:
    path = Path(directory) / AGENTS_FILE
    path.write_text(render_agents_md(settings, model_id, now), encoding="utf-8")
    log.info("cli.agents_md_written", path=str(path))
    return path


# ─────────────────────────────────────────────────────────────────────────────
# REPL
# ─────────────────────────────────────────────────────────────────────────────


class CLIInterface:
    """
    Interactive REPL. Holds the current ThreadState between turns.
    """

    def __init__(
        self,
        settings: Settings,
        agent: Optional[Agent] = None,
        model_id: Optional[str] = None,
        console: Optional[Console] = None,
    ):
        self.settings = settings
        self.console = console if console is not None else Console()
        self.agent = agent if agent is not None else Agent(settings)
        self.model_id = model_id or settings.llm.default_model
        self.state: ThreadState = self.agent.initialize()
        self._running = True

    # ── Startup ───────────────────────────────────────────────────────────────

    async def start(self) -> None:
        self._print_banner()
        await self._repl_loop()

    def _print_banner(self) -> None:
        self.console.print(
            Panel(
                f"[bold]{self.settings.agent.name}[/] v{self.settings.agent.version}\n"
                f"[dim]model: {self.model_id}  ·  /help for commands[/]",
                border_style="cyan",
                box=box.ROUNDED,
            )
        )

    async def _repl_loop(self) -> None:
        while self._running:
            try:
                raw = await asyncio.to_thread(self.console.input, "[bold cyan]gilfoyle>[/] ")
            except (EOFError, KeyboardInterrupt):
                self.console.print("\n[dim]Goodbye.[/]")
                break

            raw = raw.strip()
            if not raw:
                continue
            await self.dispatch(raw)

    # ── Command Dispatch ──────────────────────────────────────────────────────

    async def dispatch(self, raw: str) -> None:
        """Route a line of input to a slash command or the agent."""
        if not raw.startswith("/"):
            await self._cmd_ask(raw)
            return

        parts = raw.split(maxsplit=1)
        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        handlers = {
            "/init":    lambda _: self._cmd_init(),
            "/compact": lambda _: self._cmd_compact(),
            "/export":  self._cmd_export,
            "/usage":   lambda _: self._cmd_usage(),
            "/clear":   lambda _: self._cmd_clear(),
            "/system":  self._cmd_system,
            "/help":    lambda _: self._print_help(),
            "/exit":    lambda _: self._cmd_exit(),
            "/quit":    lambda _: self._cmd_exit(),
        }
        handler = handlers.get(cmd)
        if handler is None:
            self.console.print(f"[yellow]Unknown command: {cmd}. Type /help for commands.[/]")
            return

        result = handler(arg)
        if asyncio.iscoroutine(result):
            await result

    # ── Commands ──────────────────────────────────────────────────────────────

    async def _cmd_ask(self, message: str) -> None:
        with self.console.status("[dim]Thinking...[/]", spinner="dots"):
            response = await self.agent.run_turn(message, self.state, self.model_id)
        self.state = response.state
        self._render_response(response)

    def _cmd_init(self) -> None:
        self.state = self.agent.initialize()
        try:
            path = write_agents_md(self.settings, self.model_id)
        except OSError as e:
            self.console.print(f"[red]Initialization failed: {e}[/]")
            return
        self.console.print(f"[green]✓ Agent initialized and {path} created[/]")

    async def _cmd_compact(self) -> None:
        before = len(self.state.events)
        with self.console.status("[dim]Summarising conversation...[/]", spinner="dots"):
            self.state = await self.agent.compact(self.state, self.model_id)
        after = len(self.state.events)

        if after == before:
            self.console.print(
                f"[dim]Nothing compacted ({before} event(s); compaction needs more than "
                f"{self.settings.compaction.min_events}, or the summary call failed).[/]"
            )
            return
        self.console.print(
            Panel(
                Markdown(self.state.events[0].content),
                title="[cyan]✓ Compacted[/]",
                border_style="cyan",
                padding=(0, 2),
            )
        )

    def _cmd_export(self, fmt: str) -> None:
        fmt = fmt or self.settings.export.default_format
        try:
            path = write_export(self.state, fmt, self.settings.export.directory)
        except ExportFormatError as e:
            self.console.print(f"[red]{e}[/]")
            return
        except OSError as e:
            self.console.print(f"[red]Export failed: {e}[/]")
            return
        self.console.print(f"[green]✓ Conversation exported to {path}[/]")

    def _cmd_usage(self) -> None:
        usage = self.state.usage
        table = Table(title="Token Usage", box=box.SIMPLE)
        table.add_column("Kind", style="cyan")
        table.add_column("Tokens", justify="right")
        table.add_row("Prompt", f"{usage.prompt_tokens:,}")
        table.add_row("Completion", f"{usage.completion_tokens:,}")
        table.add_row("Total", f"{usage.total_tokens:,}")
        table.add_row("Events", f"{len(self.state.events):,}")
        self.console.print(table)

    def _cmd_clear(self) -> None:
        self.state = self.agent.initialize()
        self.console.print("[dim]Conversation cleared.[/]")

    def _cmd_system(self, prompt: str) -> None:
        if not prompt:
            self.console.print(Panel(get_system_message(self.state), title="System prompt"))
            return
        self.state = update_system_message(self.state, prompt)
        self.console.print("[green]✓ System prompt updated[/]")

    def _cmd_exit(self) -> None:
        self._running = False
        self.console.print("[dim]Goodbye.[/]")

    def _print_help(self) -> None:
        self.console.print(Markdown(_HELP_TEXT))

    # ── Rendering ─────────────────────────────────────────────────────────────

    def _render_response(self, response: AgentResponse) -> None:
        events = response.state.events
        for event in events[len(events) - self._events_this_turn(response):]:
            if event.metadata.get("status"):
                icon = event.metadata.get("icon", "")
                self.console.print(f"[dim]{icon} {event.intent}[/]")

        text = response.content.strip()
        if not text:
            return
        self.console.print(
            Panel(
                Markdown(text),
                title=f"[bold]{self.settings.agent.name}[/]",
                border_style="red" if text.startswith("LLM call failed") else "green",
                padding=(0, 2),
            )
        )

    @staticmethod
    def _events_this_turn(response: AgentResponse) -> int:
        """Number of events after the last user_input (tool events plus the reply)."""
        events = response.state.events
        for i in range(len(events) - 1, -1, -1):
            if events[i].intent == "user_input":
                return len(events) - i - 1
        return 0


async def run_cli(settings: Settings, model_id: Optional[str] = None) -> None:
    try:
        cli = CLIInterface(settings, model_id=model_id)
    except GilfoyleError as e:
        Console().print(f"[red]❌ Failed to start: {e}[/]")
        return
    await cli.start()
