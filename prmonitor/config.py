"""Configuration loading from YAML and environment.

Every section is a pydantic-settings model, so any field can be overridden
with an env var using the section prefix (e.g. POLLING_INTERVAL_SECONDS=60,
INACTIVITY_ENABLED=true). Values in the YAML file may reference env vars as
${VAR} or $VAR.
"""

import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_REFRESH_INTERVAL = 10
MAX_REFRESH_INTERVAL = 300
DEFAULT_REFRESH_INTERVAL = 30
DEFAULT_INACTIVE_THRESHOLD_DAYS = 3
DEFAULT_VOICE_TEXT = "Build ready for Q A"


class GhConfig(BaseSettings):
    """GitHub CLI (gh) invocation settings."""

    model_config = SettingsConfigDict(env_prefix="GH_", extra="ignore")

    command: str = Field(default="gh", description="gh executable name or path")
    timeout: float = Field(default=30, gt=0, description="Timeout per gh call in seconds")
    search_limit: int = Field(default=100, ge=1, le=1000, description="--limit for gh search prs")
    detail_concurrency: int = Field(default=4, ge=1, le=32, description="Parallel gh pr view calls per pipeline")
    extra_paths: list[str] = Field(
        default_factory=lambda: ["/opt/homebrew/bin", "/usr/local/bin", "/opt/homebrew/sbin", "/usr/local/sbin"],
        description="Directories prepended to PATH when running gh",
    )


class PollingConfig(BaseSettings):
    """Polling cadence."""

    model_config = SettingsConfigDict(env_prefix="POLLING_", extra="ignore")

    interval_seconds: int = Field(
        default=DEFAULT_REFRESH_INTERVAL,
        ge=MIN_REFRESH_INTERVAL,
        le=MAX_REFRESH_INTERVAL,
        description="Seconds between refreshes",
    )


class InactivityConfig(BaseSettings):
    """Inactive branch detection."""

    model_config = SettingsConfigDict(env_prefix="INACTIVITY_", extra="ignore")

    enabled: bool = Field(default=False, description="Mark PRs without recent updates as inactive")
    threshold_days: int = Field(
        default=DEFAULT_INACTIVE_THRESHOLD_DAYS,
        ge=1,
        le=90,
        description="Days without update before a PR is inactive",
    )


class DisplayConfig(BaseSettings):
    """Ordering and classification preferences."""

    model_config = SettingsConfigDict(env_prefix="DISPLAY_", extra="ignore")

    sort_non_success_first: bool = Field(default=False, description="Move non-success PRs to the top of each group")
    # Status for PRs without any checks: success (default) or unknown
    empty_checks_status: str = Field(default="success", description="success or unknown")
    demo_mode: bool = Field(default=False, description="Serve sample data instead of calling gh")

    @field_validator("empty_checks_status")
    @classmethod
    def _check_empty_status(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("success", "unknown"):
            raise ValueError("empty_checks_status must be 'success' or 'unknown'")
        return value


class NotificationsConfig(BaseSettings):
    """Delivery of build-complete notifications for watched PRs."""

    model_config = SettingsConfigDict(env_prefix="NOTIFICATIONS_", extra="ignore")

    enabled: bool = Field(default=True, description="Master switch for notifications")
    log: bool = Field(default=True, description="Log each completion")
    command: list[str] = Field(
        default_factory=list,
        description="Command run per completion; {title}, {subtitle}, {body} are substituted",
    )
    voice_command: list[str] = Field(default_factory=list, description="Command to speak text, e.g. ['say']")
    voice_text: str = Field(default=DEFAULT_VOICE_TEXT, description="Text spoken when a build succeeds")
    webhook_url: str | None = Field(default=None, description="URL to POST a JSON payload to")
    webhook_timeout: float = Field(default=10, gt=0, description="Webhook request timeout in seconds")


class WatchlistConfig(BaseSettings):
    """Watched PRs persistence."""

    model_config = SettingsConfigDict(env_prefix="WATCHLIST_", extra="ignore")

    path: str = Field(default=".prmonitor/watchlist.yaml", description="YAML file with watched PRs")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    gh: GhConfig = Field(default_factory=GhConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    inactivity: InactivityConfig = Field(default_factory=InactivityConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    watchlist: WatchlistConfig = Field(default_factory=WatchlistConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


SECTIONS: dict[str, type[BaseSettings]] = {
    "gh": GhConfig,
    "polling": PollingConfig,
    "inactivity": InactivityConfig,
    "display": DisplayConfig,
    "notifications": NotificationsConfig,
    "watchlist": WatchlistConfig,
    "logging": LoggingConfig,
}

_ENV_REF = re.compile(r"\$\{(\w+)\}|\$(\w+)")


def _substitute_env(value: Any, env: Mapping[str, str]) -> Any:
    """Expand ${VAR} and $VAR references anywhere in strings; unknown names stay as written."""
    if isinstance(value, str):
        return _ENV_REF.sub(lambda m: env.get(m.group(1) or m.group(2), m.group(0)), value)
    if isinstance(value, dict):
        return {k: _substitute_env(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v, env) for v in value]
    return value


def load_config(config_path: Path | None = None, env: Mapping[str, str] | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    A missing file yields defaults (still overridable from env). Unknown
    top-level sections are ignored.
    """
    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    raw = _substitute_env(raw, os.environ if env is None else env)

    sections = {name: cls(**(raw.get(name) or {})) for name, cls in SECTIONS.items()}
    return AppConfig(**sections)
