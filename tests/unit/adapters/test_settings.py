# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Unit tests for Pydantic Settings configuration.

Tests configuration loading from environment variables and defaults
with validation.
"""

import pytest

from rendercache.adapters.config.settings import (
    CacheSettings,
    SecretsSettings,
    ServerSettings,
    Settings,
    get_settings,
    reload_settings,
)

pytestmark = pytest.mark.unit


class TestCacheSettings:
    """Tests for memoization cache configuration."""

    def test_default_values(self) -> None:
        """Should load with documented default values."""
        settings = CacheSettings()

        assert settings.capacity == 256
        assert settings.max_key_depth == 32
        assert settings.memoize_by_default is True

    def test_load_from_env_vars(self, monkeypatch) -> None:
        """Should load from RENDERCACHE_CACHE_* environment variables."""
        monkeypatch.setenv("RENDERCACHE_CACHE_CAPACITY", "1024")
        monkeypatch.setenv("RENDERCACHE_CACHE_MAX_KEY_DEPTH", "8")
        monkeypatch.setenv("RENDERCACHE_CACHE_MEMOIZE_BY_DEFAULT", "false")

        settings = CacheSettings()

        assert settings.capacity == 1024
        assert settings.max_key_depth == 8
        assert settings.memoize_by_default is False

    def test_zero_capacity_allowed(self) -> None:
        assert CacheSettings(capacity=0).capacity == 0

    def test_validation_capacity_ge_0(self) -> None:
        """Should reject negative capacity."""
        with pytest.raises(ValueError, match="greater than or equal to 0"):
            CacheSettings(capacity=-1)

    def test_validation_max_key_depth_ge_1(self) -> None:
        with pytest.raises(ValueError, match="greater than or equal to 1"):
            CacheSettings(max_key_depth=0)


class TestServerSettings:
    """Tests for HTTP server configuration."""

    def test_default_values(self) -> None:
        settings = ServerSettings()

        assert settings.host == "127.0.0.1"
        assert settings.port == 8000
        assert settings.log_level == "INFO"
        assert settings.json_logs is True

    def test_load_from_env_vars(self, monkeypatch) -> None:
        monkeypatch.setenv("RENDERCACHE_SERVER_HOST", "0.0.0.0")
        monkeypatch.setenv("RENDERCACHE_SERVER_PORT", "9000")
        monkeypatch.setenv("RENDERCACHE_SERVER_LOG_LEVEL", "debug")

        settings = ServerSettings()

        assert settings.host == "0.0.0.0"
        assert settings.port == 9000
        assert settings.log_level == "DEBUG"

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValueError):
            ServerSettings(log_level="VERBOSE")

    def test_validation_port_range(self) -> None:
        with pytest.raises(ValueError, match="greater than or equal to 1024"):
            ServerSettings(port=80)


class TestSecretsSettings:
    def test_admin_key_defaults_to_empty(self, monkeypatch) -> None:
        monkeypatch.delenv("RENDERCACHE_ADMIN_KEY", raising=False)
        assert SecretsSettings().admin_key.get_secret_value() == ""

    def test_admin_key_from_env_is_masked(self, monkeypatch) -> None:
        monkeypatch.setenv("RENDERCACHE_ADMIN_KEY", "s3cret")

        settings = SecretsSettings()

        assert settings.admin_key.get_secret_value() == "s3cret"
        assert "s3cret" not in repr(settings)


class TestSettingsSingleton:
    def test_nested_settings(self) -> None:
        settings = Settings()
        assert isinstance(settings.cache, CacheSettings)
        assert isinstance(settings.server, ServerSettings)
        assert isinstance(settings.secrets, SecretsSettings)

    def test_get_settings_returns_same_instance(self) -> None:
        assert get_settings() is get_settings()

    def test_reload_settings_picks_up_env(self, monkeypatch) -> None:
        monkeypatch.setenv("RENDERCACHE_CACHE_CAPACITY", "7")

        settings = reload_settings()

        assert settings.cache.capacity == 7
        assert get_settings() is settings

        monkeypatch.delenv("RENDERCACHE_CACHE_CAPACITY")
        reload_settings()
