"""Configuration package."""

from pocketbudget.config.settings import (
    ApiClientSettings,
    AppSettings,
    DatabaseSettings,
    LocalStorageSettings,
    ServerSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "ApiClientSettings",
    "AppSettings",
    "DatabaseSettings",
    "LocalStorageSettings",
    "ServerSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
