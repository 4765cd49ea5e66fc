"""
Shared agentloop configuration utilities.

Centralises reading of ~/.agentloop/configuration.json so that the CLI,
the HTTP backend and the agent share one implementation.
"""

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from agentloop.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_LOOPS = 25
DEFAULT_API_BASE = "http://localhost:8000/api"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_API_KEY_ENV_VAR = "AGENTLOOP_API_KEY"

# Presentation pacing, in seconds
DEFAULT_ITERATION_DELAY = 1.0
DEFAULT_TASK_DELAY = 0.8

API_KEY_PATTERN = re.compile(r"^sk-[a-zA-Z0-9]{48}$")

# ---------------------------------------------------------------------------
# Low-level config file access
# ---------------------------------------------------------------------------


def get_config_path() -> Path:
    """Return the configuration file path (AGENTLOOP_CONFIG overrides the default)."""
    override = os.environ.get("AGENTLOOP_CONFIG")
    if override:
        return Path(override)
    return Path.home() / ".agentloop" / "configuration.json"


def get_agentloop_config() -> dict[str, Any]:
    """Load the configuration file; missing or unreadable files yield {}."""
    path = get_config_path()
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8-sig") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}


def save_agentloop_config(config: dict[str, Any]) -> Path:
    """Write the configuration file, creating its directory if needed."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)
        f.write("\n")
    return path


# ---------------------------------------------------------------------------
# Derived helpers
# ---------------------------------------------------------------------------


def get_api_base() -> str:
    """Return the agent platform base URL."""
    return os.environ.get("AGENTLOOP_API_BASE") or get_agentloop_config().get(
        "api_base", DEFAULT_API_BASE
    )


def get_api_key() -> str | None:
    """Return the API key from the environment variable named in configuration."""
    env_var = get_agentloop_config().get("api_key_env_var", DEFAULT_API_KEY_ENV_VAR)
    return os.environ.get(env_var) or get_agentloop_config().get("api_key")


def get_default_max_loops() -> int:
    """Return the configured loop budget, falling back to DEFAULT_MAX_LOOPS."""
    value = get_agentloop_config().get("max_loops", DEFAULT_MAX_LOOPS)
    try:
        value = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"max_loops must be an integer, got {value!r}") from e
    if value <= 0:
        raise ConfigurationError(f"max_loops must be > 0, got {value}")
    return value


def is_valid_api_key(api_key: str) -> bool:
    """Check the key has the expected ``sk-`` + 48 alphanumerics format."""
    return bool(API_KEY_PATTERN.match(api_key or ""))


# ---------------------------------------------------------------------------
# Agent settings
# ---------------------------------------------------------------------------


class AgentMode(StrEnum):
    """How the loop is orchestrated."""

    AUTOMATIC = "automatic"  # Free-runs until a terminal state
    STEPWISE = "stepwise"  # Every iteration needs an explicit step


class PlaybackControl(StrEnum):
    PLAY = "play"
    PAUSE = "pause"


@dataclass
class ModelSettings:
    """Model settings forwarded to the backend."""

    model: str = DEFAULT_MODEL
    temperature: float = 0.9
    max_tokens: int = 400
    language: str = "English"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AgentSettings:
    """Per-run settings consumed by the execution loop."""

    max_loops: int | None = None  # Per-run override; falsy = default budget
    web_search_enabled: bool = False
    mode: AgentMode = AgentMode.AUTOMATIC
    playback_control: PlaybackControl | None = None
    model_settings: ModelSettings = field(default_factory=ModelSettings)
    iteration_delay_seconds: float = DEFAULT_ITERATION_DELAY
    task_delay_seconds: float = DEFAULT_TASK_DELAY
    default_max_loops: int = DEFAULT_MAX_LOOPS

    def __post_init__(self) -> None:
        self.mode = AgentMode(self.mode)
        if self.playback_control is not None:
            self.playback_control = PlaybackControl(self.playback_control)
        if self.max_loops is not None and self.max_loops < 0:
            raise ConfigurationError(f"max_loops must be >= 0, got {self.max_loops}")
        if self.iteration_delay_seconds < 0 or self.task_delay_seconds < 0:
            raise ConfigurationError("Pacing delays must be >= 0")

    def effective_max_loops(self) -> int:
        return self.max_loops or self.default_max_loops

    @classmethod
    def from_config(cls, **overrides: Any) -> "AgentSettings":
        """Build settings from the configuration file; keyword overrides win."""
        config = get_agentloop_config()
        llm = config.get("llm", {})
        model_settings = ModelSettings(
            model=llm.get("model", DEFAULT_MODEL),
            temperature=float(llm.get("temperature", 0.9)),
            max_tokens=int(llm.get("max_tokens", 400)),
            language=llm.get("language", "English"),
        )
        values: dict[str, Any] = {
            "web_search_enabled": bool(config.get("web_search_enabled", False)),
            "mode": config.get("mode", AgentMode.AUTOMATIC),
            "model_settings": model_settings,
            "default_max_loops": get_default_max_loops(),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
