"""Configuration module for the marketplace admin API."""

from .database import DatabaseSettings, get_database_settings
from .settings import (
    AuthSettings,
    Settings,
    StartupSecurityError,
    get_auth_settings,
    get_settings,
    get_validated_settings,
    validate_startup_security,
)

__all__ = [
    "DatabaseSettings",
    "get_database_settings",
    "AuthSettings",
    "Settings",
    "StartupSecurityError",
    "get_auth_settings",
    "get_settings",
    "get_validated_settings",
    "validate_startup_security",
]
