"""
Tests for configuration loading.
"""

import pytest

from config import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT_MS,
    load_settings,
)
from models import ConfigError

BASE_ENV = {"QIXIN_APP_KEY": "env-app-key-0001", "QIXIN_SECRET_KEY": "env-secret-key-0001"}


def _load(**overrides: str):
    return load_settings({**BASE_ENV, **overrides})


class TestDefaults:
    """Values when only credentials are set."""

    def test_defaults(self) -> None:
        settings = _load()
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.timeout_ms == DEFAULT_TIMEOUT_MS
        assert settings.max_retries == DEFAULT_MAX_RETRIES
        assert settings.port == DEFAULT_PORT
        assert settings.log_level == "INFO"
        assert settings.transport == "stdio"

    def test_credentials_property(self) -> None:
        creds = _load().credentials
        assert creds.app_key == "env-app-key-0001"
        assert creds.secret_key == "env-secret-key-0001"

    def test_secret_not_in_repr(self) -> None:
        settings = _load()
        assert "env-secret-key-0001" not in repr(settings)
        assert "env-secret-key-0001" not in repr(settings.credentials)


class TestOverrides:
    """Environment overrides."""

    def test_numeric_overrides(self) -> None:
        settings = _load(QIXIN_TIMEOUT="1000", QIXIN_MAX_RETRIES="0", PORT="8080")
        assert settings.timeout_ms == 1000
        assert settings.max_retries == 0
        assert settings.port == 8080

    def test_base_url_trailing_slash_stripped(self) -> None:
        assert _load(QIXIN_BASE_URL="https://proxy.local/api/").base_url == "https://proxy.local/api"

    def test_warn_alias(self) -> None:
        assert _load(LOG_LEVEL="warn").log_level == "WARNING"

    @pytest.mark.parametrize("env,expected", [
        ({"MCP_SSE": "true"}, "sse"),
        ({"MCP_STREAMABLE_HTTP": "true"}, "streamable-http"),
        ({"MCP_SSE": "true", "MCP_STREAMABLE_HTTP": "true"}, "streamable-http"),
        ({"MCP_SSE": "false"}, "stdio"),
    ])
    def test_transport_from_env(self, env, expected) -> None:
        assert _load(**env).transport == expected

    def test_explicit_transport_wins(self) -> None:
        settings = load_settings({**BASE_ENV, "MCP_SSE": "true"}, transport="streamable-http")
        assert settings.transport == "streamable-http"


class TestRejection:
    """Invalid configuration fails at startup."""

    @pytest.mark.parametrize("env", [
        {},
        {"QIXIN_APP_KEY": "env-app-key-0001"},
        {"QIXIN_SECRET_KEY": "env-secret-key-0001"},
    ])
    def test_missing_credentials(self, env) -> None:
        with pytest.raises(ConfigError, match="Missing credentials"):
            load_settings(env)

    def test_short_app_key(self) -> None:
        with pytest.raises(ConfigError, match="QIXIN_APP_KEY"):
            _load(QIXIN_APP_KEY="short")

    def test_short_secret(self) -> None:
        with pytest.raises(ConfigError, match="QIXIN_SECRET_KEY"):
            _load(QIXIN_SECRET_KEY="short")

    @pytest.mark.parametrize("value", ["999", "60001", "abc"])
    def test_timeout_out_of_range(self, value: str) -> None:
        with pytest.raises(ConfigError, match="QIXIN_TIMEOUT"):
            _load(QIXIN_TIMEOUT=value)

    @pytest.mark.parametrize("value", ["-1", "11"])
    def test_retries_out_of_range(self, value: str) -> None:
        with pytest.raises(ConfigError, match="QIXIN_MAX_RETRIES"):
            _load(QIXIN_MAX_RETRIES=value)

    def test_bad_port(self) -> None:
        with pytest.raises(ConfigError, match="PORT"):
            _load(PORT="70000")

    def test_bad_log_level(self) -> None:
        with pytest.raises(ConfigError, match="LOG_LEVEL"):
            _load(LOG_LEVEL="chatty")
