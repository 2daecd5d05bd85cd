"""Configuration package."""

from hisebi.config.settings import (
    AppSettings,
    AppVariant,
    GeminiSettings,
    Settings,
    StorageBackend,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "AppVariant",
    "GeminiSettings",
    "Settings",
    "StorageBackend",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
