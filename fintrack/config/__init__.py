"""Configuration package."""

from fintrack.config.settings import (
    AppSettings,
    ConcurrencySettings,
    EngineSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "ConcurrencySettings",
    "EngineSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
