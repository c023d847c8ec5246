"""Configuration package."""

from finora.config.settings import (
    AppSettings,
    LearningSettings,
    SecuritySettings,
    Settings,
    StoreSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "LearningSettings",
    "SecuritySettings",
    "Settings",
    "StoreSettings",
    "get_settings",
    "validate_all_settings",
]
