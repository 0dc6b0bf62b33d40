# Configuration module for the session store
from .settings import (
    ConfigurationError,
    Environment,
    SessionStoreSettings,
    StoreType,
    clear_settings_cache,
    create_settings_for_environment,
    get_settings,
)

__all__ = [
    "ConfigurationError",
    "Environment",
    "SessionStoreSettings",
    "StoreType",
    "clear_settings_cache",
    "create_settings_for_environment",
    "get_settings",
]
