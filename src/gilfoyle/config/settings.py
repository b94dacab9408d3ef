"""
config/settings.py — Gilfoyle Runtime Settings

Merges config.yaml (structure/defaults) with environment variables and .env
(secrets). Pydantic-powered — every field is validated and typed.

  - Sub-models reject nonsensical values at parse time (negative timeouts,
    unknown export formats, bad log levels)
  - validate_all() performs cross-field startup validation and raises
    ConfigError listing every problem found
  - load_settings() honours GILFOYLE_CONFIG when no explicit path is given
"""

from __future__ import annotations

import os
import threading as _threading
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class ConfigError(Exception):
    """Raised by validate_all() when one or more config problems are found."""


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_VALID_EXPORT_FORMATS = {"markdown", "json", "txt"}
_KNOWN_PROVIDERS = {"openai", "ollama"}

CONFIG_DIR = Path("~/.config/gilfoyle")
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Sub-models
# ─────────────────────────────────────────────────────────────────────────────

class AgentConfig(BaseModel):
    name: str = "Gilfoyle"
    version: str = "0.4.0"
    system_prompt: Optional[str] = None     # None = built-in persona prompt


class LLMConfig(BaseModel):
    default_model: str = "openai:gpt-4.1-mini"
    temperature: float = 0.7
    max_tokens: int = 4096
    timeout_seconds: float = 60.0

    @field_validator("default_model")
    @classmethod
    def _known_provider(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("llm.default_model must not be empty")
        prefix = v.split(":", 1)[0].lower() if ":" in v else "openai"
        if prefix not in _KNOWN_PROVIDERS:
            raise ValueError(
                f"llm.default_model '{v}' uses an unsupported provider. "
                f"Use one of {sorted(_KNOWN_PROVIDERS)} as the prefix, "
                f"e.g. 'openai:gpt-4.1-mini' or 'ollama:qwen3'."
            )
        return v

    @field_validator("temperature")
    @classmethod
    def _valid_temperature(cls, v: float) -> float:
        if not (0.0 <= v <= 2.0):
            raise ValueError("llm.temperature must be between 0.0 and 2.0")
        return v

    @field_validator("max_tokens")
    @classmethod
    def _positive_tokens(cls, v: int) -> int:
        if v < 1:
            raise ValueError("llm.max_tokens must be >= 1")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("llm.timeout_seconds must be > 0")
        return v


class CompactionConfig(BaseModel):
    min_events: int = 5     # compact only when there are MORE events than this

    @field_validator("min_events")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("compaction.min_events must be >= 0")
        return v


class TerminalToolConfig(BaseModel):
    default_timeout_ms: int = 30_000
    max_timeout_ms: int = 60_000
    max_output_chars: int = 5_000
    max_command_chars: int = 500

    @field_validator("default_timeout_ms", "max_timeout_ms", "max_output_chars", "max_command_chars")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("tools.terminal limits must be >= 1")
        return v

    @model_validator(mode="after")
    def _default_within_cap(self) -> "TerminalToolConfig":
        if self.default_timeout_ms > self.max_timeout_ms:
            raise ValueError(
                "tools.terminal.default_timeout_ms may not exceed "
                "tools.terminal.max_timeout_ms"
            )
        return self


class FilesystemToolConfig(BaseModel):
    read_max_chars: int = 1_000
    search_max_results: int = 10

    @field_validator("read_max_chars", "search_max_results")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("tools.filesystem limits must be >= 1")
        return v


class SearchToolConfig(BaseModel):
    max_results: int = 5
    timeout_seconds: float = 15.0

    @field_validator("max_results")
    @classmethod
    def _capped(cls, v: int) -> int:
        if not (1 <= v <= 10):
            raise ValueError("tools.search.max_results must be between 1 and 10")
        return v


class ToolsConfig(BaseModel):
    terminal: TerminalToolConfig = Field(default_factory=TerminalToolConfig)
    filesystem: FilesystemToolConfig = Field(default_factory=FilesystemToolConfig)
    search: SearchToolConfig = Field(default_factory=SearchToolConfig)


class ExportConfig(BaseModel):
    default_format: str = "markdown"
    directory: str = "."

    @field_validator("default_format")
    @classmethod
    def _known_format(cls, v: str) -> str:
        v = v.lower()
        if v not in _VALID_EXPORT_FORMATS:
            raise ValueError(
                f"export.default_format '{v}' is not valid. "
                f"Must be one of: {sorted(_VALID_EXPORT_FORMATS)}"
            )
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_dir: str = str(CONFIG_DIR / "logs")
    max_file_size_mb: int = 10
    backup_count: int = 3
    console_output: bool = False
    json_format: bool = True

    @field_validator("level")
    @classmethod
    def _valid_log_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"logging.level '{v}' is not valid. "
                f"Must be one of: {sorted(_VALID_LOG_LEVELS)}"
            )
        return upper


# ─────────────────────────────────────────────────────────────────────────────
# Root Settings
# ─────────────────────────────────────────────────────────────────────────────

class Settings(BaseSettings):
    """
    Gilfoyle runtime settings.

    Secrets and endpoints come from environment variables or .env.
    Structured sections come from config.yaml; a section present in the
    YAML file wins over its nested env form (e.g. LLM__DEFAULT_MODEL),
    which in turn wins over field defaults.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # -- Secrets / endpoints from the environment ----------------------------
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    openai_base_url: Optional[str] = Field(default=None, alias="OPENAI_BASE_URL")
    tavily_api_key: Optional[str] = Field(default=None, alias="TAVILY_API_KEY")
    ollama_base_url: str = Field(default="http://localhost:11434", alias="OLLAMA_BASE_URL")

    # -- Structured config (from config.yaml) --------------------------------
    agent: AgentConfig = Field(default_factory=AgentConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    compaction: CompactionConfig = Field(default_factory=CompactionConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Where this instance was loaded from; informational only.
    config_path: Optional[str] = None

    # -- Convenience properties ----------------------------------------------

    @property
    def default_model(self) -> str:
        return self.llm.default_model

    @property
    def agent_name(self) -> str:
        return self.agent.name

    @property
    def ollama_base_url_v1(self) -> str:
        return self.ollama_base_url.rstrip("/") + "/v1"

    @property
    def log_level(self) -> str:
        return self.logging.level

    def validate_all(self) -> None:
        """
        Full startup validation. Raises ConfigError listing every problem.

        Field validators catch type/value errors at parse time; this catches
        cross-field and environment problems they cannot see.
        """
        errors: list[str] = []

        model = self.llm.default_model
        provider = model.split(":", 1)[0].lower() if ":" in model else "openai"
        if provider == "openai" and not self.openai_api_key:
            errors.append(
                f"Model '{model}' requires OPENAI_API_KEY to be set in your "
                f"environment or .env file."
            )

        if not self.ollama_base_url.startswith(("http://", "https://")):
            errors.append(
                f"OLLAMA_BASE_URL '{self.ollama_base_url}' must start with "
                f"http:// or https://."
            )

        export_dir = Path(self.export.directory).expanduser()
        if export_dir.exists() and not export_dir.is_dir():
            errors.append(
                f"export.directory '{self.export.directory}' exists but is not a directory."
            )

        if errors:
            numbered = "\n".join(f"  {i + 1}. {e}" for i, e in enumerate(errors))
            raise ConfigError(
                f"\n\nGilfoyle startup failed — {len(errors)} configuration "
                f"problem(s) found:\n\n{numbered}\n\n"
                f"Fix the issues above in {self.config_path or DEFAULT_CONFIG_PATH} "
                f"or your .env file and restart.\n"
            )


# ─────────────────────────────────────────────────────────────────────────────
# Loader + singleton
# ─────────────────────────────────────────────────────────────────────────────

_singleton: Optional[Settings] = None
_singleton_lock = _threading.Lock()

_KNOWN_SECTIONS = {"agent", "llm", "compaction", "tools", "export", "logging"}


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level.")
    return data


def _resolve_config_path(config_path: str | Path | None) -> Path:
    """
    Resolve the config file path:
      1. Explicit config_path argument (--config flag)
      2. GILFOYLE_CONFIG environment variable
      3. ~/.config/gilfoyle/config.yaml
    """
    if config_path is not None:
        return Path(config_path).expanduser()
    env_path = os.environ.get("GILFOYLE_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings by merging the YAML config with the environment."""
    global _singleton
    resolved_path = _resolve_config_path(config_path)
    yaml_data = _load_yaml(resolved_path)

    init_kwargs = {k: v for k, v in yaml_data.items() if k in _KNOWN_SECTIONS}
    instance = Settings(**init_kwargs, config_path=str(resolved_path))
    with _singleton_lock:
        _singleton = instance
    return instance


def get_settings() -> Settings:
    """Return the global Settings singleton, loading defaults on first use."""
    if _singleton is not None:
        return _singleton
    with _singleton_lock:
        if _singleton is not None:
            return _singleton
    return load_settings()
