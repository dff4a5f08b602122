"""
Print agent configuration.

Two layers:

* ``AgentSettings``: process knobs from environment variables prefixed
  ``POS_AGENT_`` (timeouts, backoff, dedup window, config file path).
* ``AgentConfig``: the JSON file listing the backend URL and one entry per
  theater the agent prints for::

      {
        "backendUrl": "http://pos.local:8080",
        "agents": [{"label": "Screen 1", "username": "...", "password": "..."}]
      }

A missing or unreadable file is the agent's only fatal error.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pos_agent.errors import AgentConfigError
from shared.utils.schemas import CamelModel

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "config.json"


class AgentSettings(BaseSettings):
    """Agent runtime settings with defaults for a LAN deployment."""

    model_config = SettingsConfigDict(
        env_prefix="POS_AGENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    config_path: Path = DEFAULT_CONFIG_PATH

    # HTTP
    request_timeout: float = 10.0  # Login, printer config and order fetch
    # Two missed keep-alives (backend sends one every 25 s) force a reconnect
    keepalive_timeout: float = 60.0

    # Reconnect backoff bounds in seconds
    backoff_initial: float = 1.0
    backoff_max: float = 30.0

    # Delay between login attempts that failed
    login_retry_delay: float = 10.0

    # Seconds an order id stays in the recently-printed set (0 disables)
    dedup_window: float = 600.0

    # Max seconds to wait for the OS spooler command
    spooler_timeout: float = 30.0

    # Seconds between status lines of the idle keep-alive task
    status_interval: float = 300.0


@lru_cache
def get_agent_settings() -> AgentSettings:
    """Get cached agent settings instance."""
    return AgentSettings()


class TenantEntry(CamelModel):
    """One theater the agent prints for."""

    label: str = ""
    username: str | None = None
    password: str | None = None
    # Explicit tenant selection, required for super-admin accounts
    theater_id: int | None = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)

    @property
    def display_name(self) -> str:
        return self.label or self.username or "<unnamed>"


class AgentConfig(CamelModel):
    """Parsed agent configuration file."""

    backend_url: str
    agents: list[TenantEntry] = Field(default_factory=list)

    @field_validator("backend_url")
    @classmethod
    def validate_backend_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("backendUrl must start with http:// or https://")
        return v


def load_agent_config(path: Path | str | None = None) -> AgentConfig:
    """
    Read and validate the agent configuration file.

    Raises:
        AgentConfigError: File missing, not JSON, or not a valid config.
    """
    config_path = Path(path) if path else get_agent_settings().config_path

    if not config_path.is_file():
        raise AgentConfigError(
            f"Agent config not found at {config_path}. "
            "Copy config.example.json to config.json and fill in credentials."
        )

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise AgentConfigError(f"Cannot read agent config {config_path}: {e}") from e

    try:
        config = AgentConfig.model_validate(raw)
    except ValidationError as e:
        raise AgentConfigError(f"Invalid agent config {config_path}: {e}") from e

    if not config.agents:
        raise AgentConfigError(f"Agent config {config_path} has no agents")

    return config
