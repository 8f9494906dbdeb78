from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from platformdirs import user_cache_dir, user_config_dir

APP_NAME = "OnCallPlanner"
ENV_PREFIX = "ONCALL_PLANNER_"
ENV_FILE_NAME = "settings.env"

DEFAULT_API_URL = "http://localhost:8080/api/internal/v1"
DEFAULT_TIMEZONE = "UTC"
DEFAULT_PREVIEW_DEBOUNCE_MS = 200
DEFAULT_REQUEST_TIMEOUT = 30.0


def _config_dir() -> Path:
    path = Path(user_config_dir(APP_NAME, roaming=True))
    path.mkdir(parents=True, exist_ok=True)
    return path


def _cache_dir() -> Path:
    path = Path(user_cache_dir(APP_NAME))
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_dir() -> Path:
    return _config_dir()


def cache_dir() -> Path:
    return _cache_dir()


def log_dir() -> Path:
    path = cache_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _env_file_path(explicit: Path | None) -> Path:
    if explicit is not None:
        return explicit
    return _config_dir() / ENV_FILE_NAME


@dataclass(slots=True)
class Settings:
    """Connection and form defaults for the on-call scheduling API.

    The API token is not part of this record; it lives in the OS keyring
    (see :class:`oncall_planner.auth.SecretStore`).
    """

    api_url: str = DEFAULT_API_URL
    timezone: str = DEFAULT_TIMEZONE
    user_agent: str = "OnCallPlanner-Python"
    preview_debounce_ms: int = DEFAULT_PREVIEW_DEBOUNCE_MS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def preview_debounce_seconds(self) -> float:
        return max(self.preview_debounce_ms, 0) / 1000

    @property
    def is_configured(self) -> bool:
        """True when an API endpoint is set."""
        return bool(self.api_url)


class SettingsManager:
    """Load and persist application settings with environment overrides."""

    def __init__(self, env_file: Path | None = None) -> None:
        self._env_file = _env_file_path(env_file)

    @property
    def env_file(self) -> Path:
        return self._env_file

    def load(self) -> Settings:
        """Load settings from environment, falling back to persisted file."""
        load_dotenv(self._env_file, override=False)

        settings = Settings()
        api_url = self._get_env("API_URL")
        if api_url:
            settings.api_url = api_url.rstrip("/")
        timezone = self._get_env("TIMEZONE")
        if timezone:
            settings.timezone = timezone
        user_agent = self._get_env("USER_AGENT")
        if user_agent:
            settings.user_agent = user_agent
        settings.preview_debounce_ms = self._get_int(
            "PREVIEW_DEBOUNCE_MS", settings.preview_debounce_ms
        )
        settings.request_timeout = self._get_float(
            "REQUEST_TIMEOUT", settings.request_timeout
        )
        return settings

    def save(self, settings: Settings) -> None:
        """Persist configuration fields to the managed env file."""
        self._env_file.parent.mkdir(parents=True, exist_ok=True)
        content = [
            f"{ENV_PREFIX}API_URL={settings.api_url or ''}",
            f"{ENV_PREFIX}TIMEZONE={settings.timezone or ''}",
            f"{ENV_PREFIX}USER_AGENT={settings.user_agent or ''}",
            f"{ENV_PREFIX}PREVIEW_DEBOUNCE_MS={settings.preview_debounce_ms}",
            f"{ENV_PREFIX}REQUEST_TIMEOUT={settings.request_timeout}",
        ]
        self._env_file.write_text("\n".join(content) + "\n", encoding="utf-8")

    def _get_env(self, name: str) -> str | None:
        return os.getenv(f"{ENV_PREFIX}{name}") or None

    def _get_int(self, name: str, default: int) -> int:
        raw = self._get_env(name)
        if raw is None:
            return default
        try:
            return int(raw.strip())
        except ValueError:
            return default

    def _get_float(self, name: str, default: float) -> float:
        raw = self._get_env(name)
        if raw is None:
            return default
        try:
            return float(raw.strip())
        except ValueError:
            return default


__all__ = [
    "APP_NAME",
    "Settings",
    "SettingsManager",
    "cache_dir",
    "config_dir",
    "log_dir",
]
