"""Pydantic settings loaded from YAML configuration with env overrides."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, SecretStr, field_validator

from alert_dispatcher.core.types import DEFAULT_ROUTE_KEY, RoutingTable

logger = structlog.get_logger(__name__)

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")

_ALARM_CHANNELS_FILE = "alarm-channels.yaml"


class SlackConfig(BaseModel):
    """Slack Web API and interactivity configuration."""

    bot_token: SecretStr = SecretStr("")
    signing_secret: SecretStr = SecretStr("")
    api_url: str = "https://slack.com/api/chat.postMessage"
    timeout_secs: float = 10.0
    response_timeout_secs: float = 10.0
    max_request_age_secs: int = 300


class QueueConfig(BaseModel):
    """Message-queue polling configuration."""

    enabled: bool = True
    queue_url: str = ""
    region: str | None = None
    max_messages: int = 5
    wait_time_secs: int = 10
    poll_interval_secs: float = 10.0
    error_backoff_secs: float = 5.0


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8088


class RoutingConfig(BaseModel):
    """Priority → channel defaults plus per-alert explicit mappings."""

    channels: dict[str, str] = {
        "P0": "#p0-infra-alerts",
        "P1": "#p1-infra-alerts",
        "P2": "#p2-infra-alerts",
        DEFAULT_ROUTE_KEY: "#alerts",
    }
    alarm_mappings: dict[str, str] = {}
    config_dir: str = "/etc/config"

    @field_validator("channels")
    @classmethod
    def _require_default(cls, v: dict[str, str]) -> dict[str, str]:
        if not v.get(DEFAULT_ROUTE_KEY, "").strip():
            raise ValueError("routing.channels must define a non-empty 'default' channel")
        return v

    def to_table(self) -> RoutingTable:
        """Build the immutable table handed to the router."""
        return RoutingTable(
            priority_channels=dict(self.channels),
            alarm_channels=dict(self.alarm_mappings),
        )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"


class Settings(BaseModel):
    """Root settings container."""

    slack: SlackConfig = SlackConfig()
    queue: QueueConfig = QueueConfig()
    server: ServerConfig = ServerConfig()
    routing: RoutingConfig = RoutingConfig()
    logging: LoggingConfig = LoggingConfig()

    def missing_required(self) -> list[str]:
        """Names of required settings that are still empty."""
        missing: list[str] = []
        if self.queue.enabled and not self.queue.queue_url:
            missing.append("SQS_QUEUE_URL")
        if not self.slack.bot_token.get_secret_value():
            missing.append("SLACK_BOT_TOKEN")
        if not self.slack.signing_secret.get_secret_value():
            missing.append("SLACK_SIGNING_SECRET")
        return missing


# ── Env overrides ───────────────────────────────────────────────

# env var → (section, key)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "SQS_QUEUE_URL": ("queue", "queue_url"),
    "AWS_REGION": ("queue", "region"),
    "POLL_INTERVAL_SEC": ("queue", "poll_interval_secs"),
    "SLACK_BOT_TOKEN": ("slack", "bot_token"),
    "SLACK_SIGNING_SECRET": ("slack", "signing_secret"),
    "SERVER_PORT": ("server", "port"),
    "CONFIG_PATH": ("routing", "config_dir"),
    "LOG_LEVEL": ("logging", "level"),
}

_CHANNEL_ENV: dict[str, str] = {
    "SLACK_CHANNEL_P0": "P0",
    "SLACK_CHANNEL_P1": "P1",
    "SLACK_CHANNEL_P2": "P2",
    "SLACK_CHANNEL_DEFAULT": DEFAULT_ROUTE_KEY,
}


_SECTIONS = ("slack", "queue", "server", "routing", "logging")


def _normalize_sections(data: dict[str, Any]) -> None:
    """Turn empty YAML sections (``routing:`` with no body) into mappings."""
    for section in _SECTIONS:
        value = data.get(section)
        if value is None:
            data[section] = {}
        elif not isinstance(value, dict):
            raise ValueError(f"config section '{section}' must be a mapping")


def _apply_env_overrides(data: dict[str, Any], env: Mapping[str, str]) -> None:
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data[section][key] = value


def _channel_env_overrides(env: Mapping[str, str]) -> dict[str, str]:
    return {key: env[var] for var, key in _CHANNEL_ENV.items() if env.get(var)}


def load_alarm_channels(config_dir: str | Path) -> tuple[dict[str, str], dict[str, str]]:
    """Read ``alarm-channels.yaml`` from *config_dir*.

    Returns:
        (alarm_mappings, default_channels). Both are empty when the file is
        missing or cannot be parsed.
    """
    path = Path(config_dir) / _ALARM_CHANNELS_FILE
    if not path.exists():
        logger.info("alarm_channels_not_found", path=str(path))
        return {}, {}

    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        logger.exception("alarm_channels_load_failed", path=str(path))
        return {}, {}

    if not isinstance(raw, dict):
        return {}, {}

    mappings = raw.get("alarm_mappings") or {}
    defaults = raw.get("default_channels") or {}
    mappings = {str(k): str(v) for k, v in mappings.items()} if isinstance(mappings, dict) else {}
    defaults = {str(k): str(v) for k, v in defaults.items()} if isinstance(defaults, dict) else {}
    logger.info("alarm_channels_loaded", path=str(path), mappings=len(mappings))
    return mappings, defaults


def load_settings(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from a YAML file, apply env overrides and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.
        env: Environment mapping. Defaults to ``os.environ``.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH
    env = os.environ if env is None else env

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    _normalize_sections(data)
    _apply_env_overrides(data, env)

    # Channel precedence: built-in < settings file < alarm file < env vars
    routing = data["routing"]
    config_dir = routing.get("config_dir") or RoutingConfig().config_dir
    mappings, defaults = load_alarm_channels(config_dir)
    routing["channels"] = {
        **(routing.get("channels") or RoutingConfig().channels),
        **defaults,
        **_channel_env_overrides(env),
    }
    if mappings:
        routing["alarm_mappings"] = {**(routing.get("alarm_mappings") or {}), **mappings}

    _settings = Settings(**data)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
