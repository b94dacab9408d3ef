"""
main.py — Gilfoyle Entry Point

Usage:
    gilfoyle                                  # REPL, default settings
    gilfoyle --model ollama:qwen3             # pick a model for this session
    gilfoyle --log-level DEBUG                # verbose logging
    gilfoyle --config path/to/config.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv


def _find_env_file() -> Path | None:
    """Walk up from CWD looking for a .env file."""
    cwd = Path.cwd()
    for d in [cwd, *cwd.parents]:
        candidate = d / ".env"
        if candidate.is_file():
            return candidate
    return None


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gilfoyle",
        description="Gilfoyle — terminal AI development assistant",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: $GILFOYLE_CONFIG or ~/.config/gilfoyle/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override log level from config",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Model id for this session, e.g. openai:gpt-4.1-mini or ollama:qwen3",
    )
    return parser.parse_args(argv)


def bootstrap(args: argparse.Namespace):
    """
    Load config, validate it fully, and set up logging.
    Returns (settings, log).

    Exits with code 1 after printing a clear message if config.yaml has
    invalid values or validate_all() finds cross-field problems.
    """
    from pydantic import ValidationError

    from gilfoyle.config.settings import ConfigError, load_settings
    from gilfoyle.observability.logger import get_logger, setup_logging

    try:
        settings = load_settings(args.config)
    except ValidationError as exc:
        problems = "\n".join(
            f"  • {'.'.join(str(p) for p in e['loc']) or '?'}: {e['msg']}"
            for e in exc.errors()
        )
        print(
            f"\n❌  Config validation failed:\n\n{problems}\n\n"
            f"    Fix your config.yaml or .env file and restart.\n",
            file=sys.stderr,
        )
        sys.exit(1)
    except (ConfigError, OSError) as exc:
        print(f"\n❌  Failed to load config: {exc}\n", file=sys.stderr)
        sys.exit(1)

    if args.model:
        settings.llm.default_model = args.model

    try:
        settings.validate_all()
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)

    setup_logging(
        level=args.log_level or settings.log_level,
        log_dir=settings.logging.log_dir,
        json_format=settings.logging.json_format,
        console_output=settings.logging.console_output,
        max_bytes=settings.logging.max_file_size_mb * 1024 * 1024,
        backup_count=settings.logging.backup_count,
    )

    return settings, get_logger("gilfoyle.main")


async def main(argv: list[str] | None = None) -> int:
    env_path = _find_env_file()
    if env_path:
        load_dotenv(dotenv_path=env_path)

    args = parse_args(argv)
    settings, log = bootstrap(args)

    log.info(
        "gilfoyle.starting",
        version=settings.agent.version,
        model=settings.default_model,
        config=settings.config_path,
    )

    from gilfoyle.interfaces.cli import run_cli
    try:
        await run_cli(settings, model_id=settings.default_model)
    except KeyboardInterrupt:
        pass
    finally:
        log.info("gilfoyle.stopped")
    return 0


def cli() -> None:
    """Console-script entry point."""
    sys.exit(asyncio.run(main()))
