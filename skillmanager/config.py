"""Configuration management for skillmanager."""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from skillmanager.utils import expand_path


def _substitute_env_vars(value: Any) -> Any:
    """Recursively substitute environment variables in config values.

    Supports ${VAR_NAME} and ${VAR_NAME:-default} syntax.
    """
    if isinstance(value, str):
        pattern = r'\$\{([^}:]+)(?::-([^}]*))?\}'

        def replacer(match: re.Match) -> str:
            var_name = match.group(1)
            default = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(var_name, default)

        return re.sub(pattern, replacer, value)
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]
    return value


class PlatformsConfig(BaseModel):
    """Skill root directory for each supported assistant."""
    codex: str = "~/.codex/skills/public"
    claude: str = "~/.claude/skills"
    opencode: str = "~/.config/opencode/skill"
    copilot: str = "~/.copilot/skills"

    def root_for(self, storage_key: str) -> Path:
        """Return the expanded root for a platform storage key."""
        return expand_path(getattr(self, storage_key))


class StateConfig(BaseModel):
    """Where per-user application state is kept."""
    directory: str = "~/.local/share/skillmanager/skill-state"

    @property
    def path(self) -> Path:
        return expand_path(self.directory)


class RegistryConfig(BaseModel):
    """Remote skill registry configuration."""
    base_url: str = "https://clawdhub.com"
    timeout_seconds: float = 30.0


class ClawdhubConfig(BaseModel):
    """Publishing CLI configuration."""
    cli_path: str = "clawdhub"
    timeout_seconds: int = 120


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "text"


class Config(BaseSettings):
    """Main skillmanager configuration."""
    platforms: PlatformsConfig = Field(default_factory=PlatformsConfig)
    state: StateConfig = Field(default_factory=StateConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    clawdhub: ClawdhubConfig = Field(default_factory=ClawdhubConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: str | Path = "config.yaml") -> Config:
    """Load configuration from YAML file with environment variable substitution.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Loaded and validated Config object.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        return Config()

    with open(config_path) as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        return Config()

    config_data = _substitute_env_vars(raw_config)

    return Config(**config_data)


def generate_default_config() -> str:
    """Return the default configuration file contents."""
    return """\
# skillmanager configuration
# Environment variables can be substituted with ${VAR_NAME} syntax

platforms:
  codex: "~/.codex/skills/public"
  claude: "~/.claude/skills"
  opencode: "~/.config/opencode/skill"
  copilot: "~/.copilot/skills"

state:
  # Last-published content hashes, one JSON file per skill
  directory: "${SKILLMANAGER_STATE_DIR:-~/.local/share/skillmanager/skill-state}"

registry:
  base_url: "${CLAWDHUB_URL:-https://clawdhub.com}"
  timeout_seconds: 30

clawdhub:
  cli_path: "clawdhub"
  timeout_seconds: 120

logging:
  level: "INFO"
  format: "text"  # or "json"
"""
