"""
Logging configuration for qixin-mcp.

Simple setup that adapters and tools can import.
Extractors should NOT log (they're pure functions).

Everything goes to stderr: in stdio mode stdout carries the MCP stream.
"""

import logging
import sys
from typing import Any

# Create logger for the package
logger = logging.getLogger("qixin")

# Keys whose values never reach the log in clear text
SENSITIVE_KEYS = frozenset({"appkey", "app_key", "secretkey", "secret_key", "secret", "sign", "password", "token"})


def configure_logging(level: str = "INFO") -> None:
    """
    Configure logging for qixin-mcp.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    logger.setLevel(getattr(logging, level.upper()))

    # Only add handler if not already configured
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)

        # Concise format for MCP context
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)


# NOTE: Call configure_logging() explicitly in server.py, cli.py or test setup.
# We don't auto-configure to avoid side effects on import.


def mask_secret(value: object) -> str:
    """Mask a credential-like value: keep 4 chars at each end, or hide it entirely."""
    if not value:
        return ""
    text = str(value)
    if len(text) <= 8:
        return "****"
    return f"{text[:4]}****{text[-4:]}"


def sanitize(data: Any) -> Any:
    """Return a copy of `data` with sensitive keys masked (recursively for dicts)."""
    if not isinstance(data, dict):
        return data
    return {
        key: mask_secret(value) if str(key).lower() in SENSITIVE_KEYS else sanitize(value)
        for key, value in data.items()
    }


# Convenience functions for common patterns
def log_api_call(method: str, path: str, **params: object) -> None:
    """Log an API call with key parameters."""
    param_str = ", ".join(
        f"{k}={v!r}" for k, v in sanitize(params).items() if v is not None
    )
    logger.debug(f"API: {method} {path}({param_str})")


def log_api_result(path: str, result_count: int | None = None) -> None:
    """Log API result summary."""
    if result_count is not None:
        logger.debug(f"API: {path} returned {result_count} results")
    else:
        logger.debug(f"API: {path} completed")


def log_retry(attempt: int, max_retries: int, delay_ms: int, reason: str) -> None:
    """Log a retry attempt."""
    logger.warning(
        f"Retry {attempt}/{max_retries} in {delay_ms}ms: {reason}"
    )
