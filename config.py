"""
Configuration - Single Source of Truth

All runtime parameters are read here, once, at process start. The resulting
Settings value is passed explicitly to the client and the server factory.
Do not read QIXIN_* environment variables anywhere else.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping

from dotenv import load_dotenv

from models import ConfigError, Credentials

DEFAULT_BASE_URL = "https://api.qixin.com/APIService"

# Per-attempt HTTP timeout (milliseconds)
DEFAULT_TIMEOUT_MS = 30000
MIN_TIMEOUT_MS = 1000
MAX_TIMEOUT_MS = 60000

# Retries after the first attempt
DEFAULT_MAX_RETRIES = 3
MIN_RETRIES = 0
MAX_RETRIES = 10

# HTTP transports (SSE / streamable HTTP)
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

SERVER_NAME = "qixin-mcp-server"
SERVER_VERSION = "1.0.1"


@dataclass(frozen=True)
class Settings:
    """Validated runtime configuration."""
    app_key: str
    secret_key: str = field(repr=False)
    base_url: str = DEFAULT_BASE_URL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_retries: int = DEFAULT_MAX_RETRIES
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    transport: str = "stdio"

    @property
    def credentials(self) -> Credentials:
        return Credentials(app_key=self.app_key, secret_key=self.secret_key)


def _parse_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _is_true(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() == "true"


def load_settings(
    env: Mapping[str, str] | None = None,
    *,
    transport: str | None = None,
    use_dotenv: bool = True,
) -> Settings:
    """
    Build Settings from environment variables (and .env when present).

    Args:
        env: Variables to read (default: os.environ after loading .env)
        transport: Force a transport ('stdio', 'sse', 'streamable-http');
            otherwise MCP_STREAMABLE_HTTP / MCP_SSE decide, stdio by default
        use_dotenv: Load a .env file from the working directory first

    Raises:
        ConfigError: Missing credentials or out-of-range values
    """
    if env is None:
        if use_dotenv:
            load_dotenv()
        env = os.environ

    app_key = env.get("QIXIN_APP_KEY", "")
    secret_key = env.get("QIXIN_SECRET_KEY", "")
    if not app_key or not secret_key:
        raise ConfigError(
            "Missing credentials. Set the QIXIN_APP_KEY and QIXIN_SECRET_KEY environment variables."
        )
    if len(app_key) < 10:
        raise ConfigError("QIXIN_APP_KEY is malformed (expected at least 10 characters)")
    if len(secret_key) < 10:
        raise ConfigError("QIXIN_SECRET_KEY is malformed (expected at least 10 characters)")

    timeout_ms = _parse_int(env, "QIXIN_TIMEOUT", DEFAULT_TIMEOUT_MS)
    if not MIN_TIMEOUT_MS <= timeout_ms <= MAX_TIMEOUT_MS:
        raise ConfigError(
            f"QIXIN_TIMEOUT must be between {MIN_TIMEOUT_MS} and {MAX_TIMEOUT_MS} ms, got {timeout_ms}"
        )

    max_retries = _parse_int(env, "QIXIN_MAX_RETRIES", DEFAULT_MAX_RETRIES)
    if not MIN_RETRIES <= max_retries <= MAX_RETRIES:
        raise ConfigError(
            f"QIXIN_MAX_RETRIES must be between {MIN_RETRIES} and {MAX_RETRIES}, got {max_retries}"
        )

    port = _parse_int(env, "PORT", DEFAULT_PORT)
    if not 0 < port < 65536:
        raise ConfigError(f"PORT must be a valid TCP port, got {port}")

    log_level = env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if log_level == "WARN":
        log_level = "WARNING"
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

    if transport is None:
        if _is_true(env, "MCP_STREAMABLE_HTTP"):
            transport = "streamable-http"
        elif _is_true(env, "MCP_SSE"):
            transport = "sse"
        else:
            transport = "stdio"

    return Settings(
        app_key=app_key,
        secret_key=secret_key,
        base_url=(env.get("QIXIN_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        timeout_ms=timeout_ms,
        max_retries=max_retries,
        host=env.get("HOST") or DEFAULT_HOST,
        port=port,
        log_level=log_level,
        transport=transport,
    )
