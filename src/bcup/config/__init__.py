"""Configuration Module for bcup

Typed configuration management with environment variable and .env support.

Example:
    from bcup.config import EnvLoader, Settings

    settings = Settings.from_env(env=EnvLoader().load())
"""

from bcup.config.env_loader import EnvLoader
from bcup.config.settings import (
    FIRESTORE_BACKENDS,
    FirestoreSettings,
    LogSettings,
    SecuritySettings,
    ServerSettings,
    Settings,
    StorageSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "EnvLoader",
    "FIRESTORE_BACKENDS",
    "ServerSettings",
    "StorageSettings",
    "FirestoreSettings",
    "SecuritySettings",
    "LogSettings",
    "Settings",
    "get_settings",
    "reset_settings",
]
