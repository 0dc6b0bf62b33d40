"""
Configuration management for the session store.

This module loads and validates store settings using Pydantic settings.
Values come from environment variables prefixed with ``SESSION_STORE_``
or from .env files, layered per deployment environment.
"""

import os
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sessionstore.sql.table_name import DEFAULT_TABLE_NAME, is_valid_table_name

ENV_PREFIX = "SESSION_STORE_"


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class StoreType(str, Enum):
    """Available session store backends."""
    MEMORY = "memory"
    SQLITE = "sqlite"
    POSTGRES = "postgres"
    REDIS = "redis"


def _detect_environment() -> Environment:
    """
    Detect the current environment from SESSION_STORE_ENVIRONMENT.

    Returns:
        Environment: The detected environment, defaults to DEVELOPMENT if
        unset or unrecognized.
    """
    env_value = os.environ.get(f"{ENV_PREFIX}ENVIRONMENT", "development").lower().strip()
    try:
        return Environment(env_value)
    except ValueError:
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    """
    Get the .env files to load for the given environment.

    The base .env file is loaded first, then the environment-specific
    file, which overrides it.

    Args:
        environment: The target environment.

    Returns:
        Tuple of .env file paths to load.
    """
    return (".env", f".env.{environment.value}")


class SessionStoreSettings(BaseSettings):
    """
    Session store settings loaded from environment variables.

    Connection pools and clients are not configured here: the host
    application builds them and passes them to ``create_session_store``.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development, staging, production)"
    )

    # Backend selection
    store_type: StoreType = Field(
        default=StoreType.MEMORY,
        description="Session store backend: memory, sqlite, postgres or redis"
    )
    table_name: str = Field(
        default=DEFAULT_TABLE_NAME,
        description="Session table name for the sqlite and postgres backends"
    )
    redis_key_prefix: str = Field(
        default="session:",
        min_length=1,
        description="Key prefix for the redis backend"
    )

    # Observability
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    otel_endpoint: Optional[str] = Field(
        default=None,
        description="OpenTelemetry collector endpoint URL"
    )
    otel_service_name: str = Field(
        default="sessionstore",
        description="Service name for OpenTelemetry traces"
    )

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("store_type", mode="before")
    @classmethod
    def normalize_store_type(cls, v):
        """Accept backend names in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("table_name")
    @classmethod
    def validate_table_name(cls, v: str) -> str:
        """Validate the table name with the same rule the SQL stores apply."""
        v = v.strip()
        if not is_valid_table_name(v):
            raise ValueError(
                "table_name must be alphanumeric and may contain hyphens or underscores"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v

    @field_validator("otel_endpoint")
    @classmethod
    def validate_otel_endpoint(cls, v: Optional[str]) -> Optional[str]:
        """Empty strings disable tracing; anything else must be a URL."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("otel_endpoint must be a valid HTTP/HTTPS URL")
        return v

    @model_validator(mode="after")
    def validate_store_for_environment(self) -> "SessionStoreSettings":
        """Volatile storage is only allowed in development."""
        if self.store_type == StoreType.MEMORY and self.environment != Environment.DEVELOPMENT:
            raise ValueError(
                "store_type 'memory' is only allowed in the development environment"
            )
        return self


class ConfigurationError(Exception):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 invalid_fields: Optional[dict] = None):
        self.message = message
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(self.format_error_message())

    def format_error_message(self) -> str:
        """Format a descriptive error message listing all issues."""
        parts = [self.message]

        if self.missing_fields:
            parts.append(f"\nMissing required fields: {', '.join(self.missing_fields)}")

        if self.invalid_fields:
            invalid_parts = [f"  - {field}: {error}" for field, error in self.invalid_fields.items()]
            parts.append("\nInvalid field values:\n" + "\n".join(invalid_parts))

        return "".join(parts)


def create_settings_for_environment(
    environment: Optional[Environment] = None
) -> SessionStoreSettings:
    """
    Create settings for a specific environment.

    Detects the environment from SESSION_STORE_ENVIRONMENT (if not
    provided) and loads the matching .env files.

    Args:
        environment: Optional environment override.

    Returns:
        SessionStoreSettings: Validated settings.

    Raises:
        ConfigurationError: If settings are missing or invalid.
    """
    if environment is None:
        environment = _detect_environment()

    env_files = tuple(f for f in _get_env_files(environment) if Path(f).exists())

    try:
        class EnvironmentSettings(SessionStoreSettings):
            model_config = SettingsConfigDict(
                env_prefix=ENV_PREFIX,
                env_file=env_files or None,
                env_file_encoding="utf-8",
                case_sensitive=False,
                extra="ignore"
            )

        return EnvironmentSettings(environment=environment)
    except Exception as e:
        missing_fields = []
        invalid_fields = {}

        # Pydantic ValidationError carries field-level errors
        if hasattr(e, "errors"):
            for error in e.errors():
                field_name = ".".join(str(loc) for loc in error.get("loc", [])) or "settings"
                if error.get("type", "") == "missing":
                    missing_fields.append(field_name)
                else:
                    invalid_fields[field_name] = error.get("msg", str(error))

        raise ConfigurationError(
            f"Failed to load session store configuration for environment '{environment.value}'",
            missing_fields=missing_fields,
            invalid_fields=invalid_fields
        ) from e


# Global settings cache
_settings_cache: Optional[SessionStoreSettings] = None


def get_settings() -> SessionStoreSettings:
    """
    Get the session store settings singleton.

    Settings are loaded once and cached for subsequent calls.

    Raises:
        ConfigurationError: If settings are missing or invalid.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = create_settings_for_environment()

    return _settings_cache


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Primarily useful for tests that reload settings with different
    environment variables.
    """
    global _settings_cache
    _settings_cache = None
