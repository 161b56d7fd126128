"""
Configuration management for the Location Ingestor.

This module provides centralized configuration loading and validation using Pydantic settings.
Values are loaded from environment variables or .env files.

Requirements:
- Storage base directory is supplied externally and falls back to a relative default
- The reference timezone is configurable instead of guessed from the host
- Fail startup with a descriptive error message listing invalid values
- Support environment-specific configuration files for development, staging, and production
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional, List, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


def _detect_environment() -> Environment:
    """
    Detect the current environment from the ENVIRONMENT variable.

    Returns:
        Environment: The detected environment, defaults to DEVELOPMENT if not set.
    """
    env_value = os.environ.get("ENVIRONMENT", "development").lower().strip()
    try:
        return Environment(env_value)
    except ValueError:
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    """
    Get the list of .env files to load for the given environment.

    The base .env file is loaded first, then the environment-specific file,
    so later files override earlier ones.
    """
    env_file_map = {
        Environment.DEVELOPMENT: ".env.development",
        Environment.STAGING: ".env.staging",
        Environment.PRODUCTION: ".env.production",
    }
    return (".env", env_file_map.get(environment, ".env.development"))


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field has a default, so the service starts with no configuration
    at all and writes its day logs under ./App_Data.

    The ENVIRONMENT variable determines which environment-specific .env
    file is layered on top of the base .env file.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development, staging, production)"
    )

    # Storage Configuration
    storage_base_dir: Path = Field(
        default=Path("App_Data"),
        description="Directory holding the day-partitioned location logs"
    )
    log_file_prefix: str = Field(
        default="locations-",
        description="File name prefix of each day log"
    )
    log_file_suffix: str = Field(
        default=".log",
        description="File name suffix of each day log"
    )

    # Time Configuration
    reference_timezone: str = Field(
        default="America/Guayaquil",
        description="IANA timezone assumed for incoming naive datetimes"
    )
    reference_timezone_aliases: List[str] = Field(
        default=["Etc/GMT+5"],
        description="Timezone keys tried, in order, when reference_timezone cannot be loaded"
    )

    # Observability Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # HTTP Configuration
    host: str = Field(
        default="0.0.0.0",
        description="Interface uvicorn binds to"
    )
    port: int = Field(
        default=5088,
        ge=1,
        le=65535,
        description="Port uvicorn listens on"
    )
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("storage_base_dir", mode="before")
    @classmethod
    def validate_storage_base_dir(cls, v):
        """Fall back to the default directory when the value is blank."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return Path("App_Data")
        if isinstance(v, str):
            return Path(v.strip())
        return v

    @field_validator("log_file_prefix")
    @classmethod
    def validate_log_file_prefix(cls, v: str) -> str:
        """Reject prefixes that would escape the storage directory."""
        if not v or not v.strip():
            raise ValueError("log_file_prefix cannot be empty")
        if "/" in v or "\\" in v:
            raise ValueError("log_file_prefix cannot contain path separators")
        return v.strip()

    @field_validator("log_file_suffix")
    @classmethod
    def validate_log_file_suffix(cls, v: str) -> str:
        if "/" in v or "\\" in v:
            raise ValueError("log_file_suffix cannot contain path separators")
        return v.strip()

    @field_validator("reference_timezone")
    @classmethod
    def validate_reference_timezone(cls, v: str) -> str:
        """Validate that reference_timezone is not empty."""
        if not v or not v.strip():
            raise ValueError("reference_timezone cannot be empty")
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: List[str]) -> List[str]:
        """Validate CORS origins format and reject wildcard patterns."""
        validated_origins = []
        for origin in v:
            origin = origin.strip()
            if origin == "*" or "*" in origin:
                raise ValueError(
                    f"Wildcard patterns are not allowed in CORS origins: {origin}. "
                    "Specify exact frontend domains."
                )
            if not (origin.startswith("http://") or origin.startswith("https://")):
                raise ValueError(
                    f"Invalid CORS origin format: {origin}. "
                    "Must start with http:// or https://"
                )
            validated_origins.append(origin)
        return validated_origins


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


def create_settings_for_environment(environment: Optional[Environment] = None) -> Settings:
    """
    Factory function to create Settings for a specific environment.

    Detects the environment from the ENVIRONMENT variable (if not provided)
    and loads the appropriate environment-specific .env file.

    Args:
        environment: Optional environment override.

    Returns:
        Settings: Validated settings for the specified environment.

    Raises:
        ConfigurationError: If settings are invalid.
    """
    if environment is None:
        environment = _detect_environment()

    env_files = _get_env_files(environment)
    existing_env_files = [f for f in env_files if Path(f).exists()]
    if not existing_env_files:
        existing_env_files = list(env_files)

    try:
        class EnvironmentSettings(Settings):
            model_config = SettingsConfigDict(
                env_file=tuple(existing_env_files),
                env_file_encoding="utf-8",
                case_sensitive=False,
                extra="ignore"
            )

        return EnvironmentSettings()
    except Exception as e:
        missing_fields = []
        invalid_fields = {}

        if hasattr(e, 'errors'):
            for error in e.errors():
                field_name = '.'.join(str(loc) for loc in error.get('loc', []))
                if error.get('type', '') == 'missing':
                    missing_fields.append(field_name)
                else:
                    invalid_fields[field_name] = error.get('msg', str(error))

        raise ConfigurationError(
            f"Failed to load configuration for environment '{environment.value}'",
            missing_fields=missing_fields,
            invalid_fields=invalid_fields
        ) from e


# Global settings cache
_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Settings are loaded once and cached for subsequent calls.

    Raises:
        ConfigurationError: If settings are invalid.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = create_settings_for_environment()

    return _settings_cache


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() reloads."""
    global _settings_cache
    _settings_cache = None


def validate_startup(settings: Optional[Settings] = None) -> None:
    """
    Validate settings at application startup, before accepting requests.

    Checks that the storage directory exists (creating it if needed) and
    is writable by this process.

    Raises:
        ConfigurationError: If the storage directory is unusable.
    """
    settings = settings or get_settings()
    validation_errors = {}

    base_dir = settings.storage_base_dir
    try:
        base_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        validation_errors["storage_base_dir"] = f"Cannot create directory {base_dir}: {e}"
    else:
        if not os.access(base_dir, os.W_OK):
            validation_errors["storage_base_dir"] = f"Directory is not writable: {base_dir}"

    if validation_errors:
        raise ConfigurationError(
            "Configuration validation failed during startup",
            invalid_fields=validation_errors
        )


def get_environment_info() -> dict:
    """Report the detected environment and which .env files were found."""
    environment = _detect_environment()
    env_files = _get_env_files(environment)

    return {
        "environment": environment.value,
        "env_files_checked": list(env_files),
        "env_files_loaded": [f for f in env_files if Path(f).exists()],
    }
