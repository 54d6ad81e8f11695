# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Configuration management using Pydantic Settings."""

from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rendercache.application.memo_cache import DEFAULT_CAPACITY
from rendercache.domain.services import DEFAULT_MAX_DEPTH


class CacheSettings(BaseSettings):
    """Memoization cache configuration.

    Controls capacity and key derivation limits for caches created by the
    component registry.
    """

    model_config = SettingsConfigDict(
        env_prefix="RENDERCACHE_CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    capacity: int = Field(
        default=DEFAULT_CAPACITY,
        ge=0,
        le=1_000_000,
        description="Default entries per component cache (0 disables storage)",
    )

    max_key_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=1,
        le=256,
        description="Maximum nesting depth of input values used in cache keys",
    )

    memoize_by_default: bool = Field(
        default=True,
        description="Register components served over HTTP on the memoized path",
    )


class ServerSettings(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RENDERCACHE_SERVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(
        default="127.0.0.1",
        description="Server bind address",
    )

    port: int = Field(
        default=8000,
        ge=1024,
        le=65535,
        description="Server port",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    json_logs: bool = Field(
        default=True,
        description="Render logs as JSON (console renderer when false)",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        """Accept lowercase level names."""
        return v.upper() if isinstance(v, str) else v


class SecretsSettings(BaseSettings):
    """Sensitive configuration (API keys, tokens).

    Loaded from environment variables only.
    """

    model_config = SettingsConfigDict(
        env_prefix="RENDERCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    admin_key: SecretStr = Field(
        default=SecretStr(""),
        description="Key required in the X-Admin-Key header for cache management",
    )


class Settings(BaseSettings):
    """Root settings container.

    Aggregates all subsettings into a single object.

    Example:
        >>> settings = Settings()
        >>> settings.cache.capacity
        256
        >>> settings.server.port
        8000
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    cache: CacheSettings = Field(default_factory=CacheSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    secrets: SecretsSettings = Field(default_factory=SecretsSettings)


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings singleton.

    Loads configuration from environment variables and .env file.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings (for testing).

    Forces reload of configuration from environment.
    """
    global _settings
    _settings = Settings()
    return _settings
