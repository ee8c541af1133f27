"""
Unit tests for config_module.py and settings.py.

Tests cover:
- .env file loading and environment variable overriding
- get_config and its typed variants with present keys, missing keys, and defaults
- validate_config passing and failing scenarios
- Settings construction from the environment and validation
"""

import os
import logging
import pytest

from src.config.config_module import (
    ConfigError,
    get_config,
    get_float_config,
    get_int_config,
    load_config,
    validate_config,
)
from src.config.settings import Settings


SETTINGS_KEYS = [
    "IMAGE_SOURCE", "ALCHEMY_API_KEY", "RATE_LIMIT_INTERVAL_MS", "RATE_LIMIT_MODE",
    "MAX_RETRIES", "REQUEST_TIMEOUT_SECONDS", "BATCH_SIZE", "BATCH_DELAY_MS",
    "BATCH_CONCURRENCY", "DATA_PATH", "MAPPING_PATH", "SNAPSHOT_PATH", "PORT",
    "SSL_KEY", "SSL_CERT", "LOG_LEVEL", "LOG_FILE",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every settings key from the environment."""
    for key in SETTINGS_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestLoadConfig:
    """Test cases for load_config function."""

    def test_load_config_existing_file(self, tmp_path, caplog, monkeypatch):
        """Test loading configuration from existing .env file."""
        monkeypatch.delenv("ALCHEMY_API_KEY", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("ALCHEMY_API_KEY=abc123\nIMAGE_SOURCE=alchemy\n")

        with caplog.at_level(logging.INFO):
            load_config(str(env_file))

        assert os.getenv("ALCHEMY_API_KEY") == "abc123"
        assert os.getenv("IMAGE_SOURCE") == "alchemy"
        assert f"Loaded configuration from {str(env_file)}" in caplog.text

        monkeypatch.delenv("ALCHEMY_API_KEY", raising=False)
        monkeypatch.delenv("IMAGE_SOURCE", raising=False)

    def test_load_config_nonexistent_file(self, caplog):
        """Test loading configuration when .env file doesn't exist."""
        nonexistent_file = "/path/that/does/not/exist/.env"

        with caplog.at_level(logging.WARNING):
            load_config(nonexistent_file)

        assert f"Configuration file {nonexistent_file} not found" in caplog.text

    def test_load_config_override_existing_env(self, tmp_path, monkeypatch):
        """Test that .env file values override existing environment variables."""
        monkeypatch.setenv("OVERRIDE_TEST", "original_value")

        env_file = tmp_path / ".env"
        env_file.write_text("OVERRIDE_TEST=new_value\n")

        load_config(str(env_file))

        assert os.getenv("OVERRIDE_TEST") == "new_value"


class TestGetConfig:
    """Test cases for get_config and the typed getters."""

    def test_get_config_existing_key(self, monkeypatch):
        monkeypatch.setenv("EXISTING_KEY", "existing_value")
        assert get_config("EXISTING_KEY") == "existing_value"

    def test_get_config_missing_key_with_default(self, monkeypatch):
        monkeypatch.delenv("MISSING_KEY", raising=False)
        assert get_config("MISSING_KEY", "default_value") == "default_value"

    def test_get_config_missing_key_no_default(self, monkeypatch):
        monkeypatch.delenv("MISSING_KEY", raising=False)
        assert get_config("MISSING_KEY") is None

    def test_get_config_empty_key(self, monkeypatch):
        """An empty variable is returned as-is, not replaced by the default."""
        monkeypatch.setenv("EMPTY_KEY", "")
        assert get_config("EMPTY_KEY", "default") == ""

    def test_get_int_config(self, monkeypatch):
        monkeypatch.setenv("INT_KEY", " 42 ")
        monkeypatch.delenv("MISSING_KEY", raising=False)

        assert get_int_config("INT_KEY") == 42
        assert get_int_config("MISSING_KEY", 7) == 7

    def test_get_int_config_invalid(self, monkeypatch):
        monkeypatch.setenv("INT_KEY", "fifty")

        with pytest.raises(ConfigError) as exc_info:
            get_int_config("INT_KEY")

        assert "INT_KEY" in str(exc_info.value)

    def test_get_float_config(self, monkeypatch):
        monkeypatch.setenv("FLOAT_KEY", "2.5")
        assert get_float_config("FLOAT_KEY") == 2.5

    def test_get_float_config_invalid(self, monkeypatch):
        monkeypatch.setenv("FLOAT_KEY", "soon")

        with pytest.raises(ConfigError):
            get_float_config("FLOAT_KEY")


class TestValidateConfig:
    """Test cases for validate_config function."""

    def test_validate_config_all_present(self, caplog, monkeypatch):
        monkeypatch.setenv("VALID_KEY1", "value1")
        monkeypatch.setenv("VALID_KEY2", "value2")

        with caplog.at_level(logging.INFO):
            validate_config(["VALID_KEY1", "VALID_KEY2"])

        assert "Configuration validation passed" in caplog.text

    def test_validate_config_missing_keys(self, monkeypatch):
        monkeypatch.setenv("VALID_KEY1", "value1")
        monkeypatch.delenv("MISSING_KEY1", raising=False)
        monkeypatch.delenv("MISSING_KEY2", raising=False)

        with pytest.raises(ConfigError) as exc_info:
            validate_config(["VALID_KEY1", "MISSING_KEY1", "MISSING_KEY2"])

        assert "Missing keys: MISSING_KEY1, MISSING_KEY2" in str(exc_info.value)

    def test_validate_config_whitespace_key(self, monkeypatch):
        """Test validation treats whitespace-only values as empty."""
        monkeypatch.setenv("WHITESPACE_KEY", "   ")

        with pytest.raises(ConfigError) as exc_info:
            validate_config(["WHITESPACE_KEY"])

        assert "Empty keys: WHITESPACE_KEY" in str(exc_info.value)


class TestSettings:
    """Test cases for Settings."""

    def test_defaults_from_empty_env(self, clean_env):
        settings = Settings.from_env()

        assert settings.image_source == "cryptopunks.app"
        assert settings.alchemy_api_key is None
        assert settings.rate_limit_interval == 0.1
        assert settings.rate_limit_mode == "serialized"
        assert settings.max_retries == 3
        assert settings.request_timeout_seconds == 10.0
        assert settings.batch_size == 50
        assert settings.batch_delay == 2.0
        assert settings.batch_concurrency == 1
        assert settings.mapping_path == "openseaCdnMapping.json"
        assert settings.port == 1337
        assert settings.uses_resolver is False

    def test_values_from_env(self, clean_env):
        clean_env.setenv("IMAGE_SOURCE", "alchemy")
        clean_env.setenv("ALCHEMY_API_KEY", "secret")
        clean_env.setenv("RATE_LIMIT_INTERVAL_MS", "250")
        clean_env.setenv("RATE_LIMIT_MODE", "burst")
        clean_env.setenv("BATCH_SIZE", "10")
        clean_env.setenv("BATCH_CONCURRENCY", "4")
        clean_env.setenv("PORT", "8080")

        settings = Settings.from_env()

        assert settings.uses_resolver is True
        assert settings.alchemy_api_key == "secret"
        assert settings.rate_limit_interval == 0.25
        assert settings.rate_limit_mode == "burst"
        assert settings.batch_size == 10
        assert settings.batch_concurrency == 4
        assert settings.port == 8080

    @pytest.mark.parametrize("kwargs", [
        {"image_source": "ipfs"},
        {"rate_limit_mode": "adaptive"},
        {"rate_limit_interval_ms": -1},
        {"max_retries": 0},
        {"request_timeout_seconds": 0},
        {"batch_size": 0},
        {"batch_delay_ms": -5},
        {"batch_concurrency": 0},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ConfigError):
            Settings(**kwargs)

    def test_invalid_number_in_env(self, clean_env):
        clean_env.setenv("BATCH_SIZE", "lots")

        with pytest.raises(ConfigError):
            Settings.from_env()


class TestConfigError:
    """Test cases for ConfigError exception."""

    def test_config_error_inheritance(self):
        assert issubclass(ConfigError, Exception)

    def test_config_error_message(self):
        error = ConfigError("Test configuration error")
        assert str(error) == "Test configuration error"
