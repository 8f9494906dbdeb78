"""Configuration helpers for the OnCall Planner application."""

from .settings import APP_NAME, Settings, SettingsManager

__all__ = [
    "APP_NAME",
    "Settings",
    "SettingsManager",
]
