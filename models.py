"""
Type definitions for qixin-mcp.

Dataclasses defining the contracts between layers:
- Adapters sign and dispatch upstream calls, returning QueryResult | QueryError
- Extractors reshape upstream payloads (pure functions)
- Tools validate arguments and wire everything together

QixinError is raised inside the dispatch layer only. Everything that crosses
the dispatcher boundary is a tagged result, so the MCP peer never sees an
exception.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ============================================================================
# ERROR TYPES
# ============================================================================

class ErrorKind(Enum):
    """Categories of errors for consistent handling."""
    INVALID_CREDENTIAL = "invalid_credential"        # Malformed app key / secret
    INVALID_ARGUMENT = "invalid_argument"            # Bad keyword, name or offset
    TRANSPORT_FAILURE = "transport_failure"          # Connect/read error, client timeout
    UPSTREAM_SERVER_ERROR = "upstream_server_error"  # HTTP 5xx
    RATE_LIMITED = "rate_limited"                    # HTTP 429
    UPSTREAM_CLIENT_ERROR = "upstream_client_error"  # HTTP 4xx or non-success status field
    EMPTY_RESULT = "empty_result"                    # Success envelope without data
    CANCELLED = "cancelled"                          # Caller deadline expired
    UNKNOWN = "unknown"                              # Unparseable response


# Codes reported when upstream does not supply its own error_code
DEFAULT_ERROR_CODES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_CREDENTIAL: "INVALID_CREDENTIAL",
    ErrorKind.INVALID_ARGUMENT: "INVALID_ARGUMENT",
    ErrorKind.TRANSPORT_FAILURE: "NETWORK_ERROR",
    ErrorKind.UPSTREAM_SERVER_ERROR: "API_ERROR",
    ErrorKind.RATE_LIMITED: "RATE_LIMITED",
    ErrorKind.UPSTREAM_CLIENT_ERROR: "API_ERROR",
    ErrorKind.EMPTY_RESULT: "NO_DATA",
    ErrorKind.CANCELLED: "CANCELLED",
    ErrorKind.UNKNOWN: "UNKNOWN_ERROR",
}

RETRYABLE_KINDS = frozenset({
    ErrorKind.TRANSPORT_FAILURE,
    ErrorKind.UPSTREAM_SERVER_ERROR,
    ErrorKind.RATE_LIMITED,
})


class QixinError(Exception):
    """
    Structured error raised inside the signing and dispatch layers.

    The retry loop pattern-matches on `retryable`; QixinClient.request()
    converts it into a QueryError before returning to callers.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        retryable: bool | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.code = code or DEFAULT_ERROR_CODES[kind]
        self.status_code = status_code
        self.retryable = kind in RETRYABLE_KINDS if retryable is None else retryable


class ConfigError(Exception):
    """Invalid or missing startup configuration."""


# ============================================================================
# CREDENTIALS
# ============================================================================

@dataclass(frozen=True)
class Credentials:
    """App key / secret key pair. Format is checked by validation.validate_credentials."""
    app_key: str
    secret_key: str = field(repr=False)


# ============================================================================
# DISPATCH RESULTS
# ============================================================================

@dataclass
class QueryResult:
    """Successful upstream query. `data` is the vendor payload, unmodified
    apart from best-effort field aliasing."""
    data: Any
    path: str = ""
    attempts: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for MCP response."""
        if isinstance(self.data, dict):
            return self.data
        # Tool responses are JSON objects; wrap the rare list/scalar payload
        return {"data": self.data}


@dataclass
class QueryError:
    """Failed upstream query, in the uniform shape tools hand back to the peer."""
    kind: ErrorKind
    message: str
    code: str

    @classmethod
    def from_exception(cls, error: QixinError) -> "QueryError":
        return cls(kind=error.kind, message=error.message, code=error.code)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for MCP response."""
        return {
            "error": True,
            "kind": self.kind.value,
            "message": self.message,
            "code": self.code,
        }


QueryOutcome = QueryResult | QueryError
