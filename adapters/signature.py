"""
Request signing for the Qixin API.

sign = md5(appkey + timestamp + secretKey), hex-encoded. The timestamp is
milliseconds since epoch and is single-use: headers are rebuilt for every
outbound attempt and never cached.
"""

import hashlib
import threading
import time
from typing import Callable

from validation import validate_credentials

__all__ = [
    "AUTH_VERSION",
    "sign",
    "current_timestamp",
    "build_auth_headers",
]

AUTH_VERSION = "2.0"

_timestamp_lock = threading.Lock()
_last_timestamp = 0


def sign(app_key: str, secret_key: str, timestamp: int) -> str:
    """
    Compute the request signature.

    Credentials are checked before anything is hashed.

    Returns:
        32 lowercase hex characters

    Raises:
        QixinError(INVALID_CREDENTIAL): Malformed app key or secret
    """
    validate_credentials(app_key, secret_key)
    return hashlib.md5(f"{app_key}{timestamp}{secret_key}".encode("utf-8")).hexdigest()


def current_timestamp() -> int:
    """
    Wall-clock milliseconds since epoch, strictly increasing within the process.

    Two calls inside the same millisecond get distinct values, so consecutive
    signatures never collide.
    """
    global _last_timestamp
    now = time.time_ns() // 1_000_000
    with _timestamp_lock:
        if now <= _last_timestamp:
            now = _last_timestamp + 1
        _last_timestamp = now
    return now


def build_auth_headers(
    app_key: str,
    secret_key: str,
    clock: Callable[[], int] = current_timestamp,
) -> dict[str, str]:
    """Fresh authentication headers for one outbound request."""
    timestamp = clock()
    signature = sign(app_key, secret_key, timestamp)
    return {
        "Auth-version": AUTH_VERSION,
        "appkey": app_key,
        "timestamp": str(timestamp),
        "sign": signature,
        "Connection": "keep-alive",
    }
