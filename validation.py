"""
Input validation and credential parsing utilities.

Handles:
- App key / secret key format checks
- Keyword / name / offset checks for the query tools
- Per-request credentials supplied to the HTTP transports

Every check here runs before any network I/O.
"""

import base64
import binascii
from typing import Mapping

from models import Credentials, ErrorKind, QixinError

# =============================================================================
# CONSTANTS
# =============================================================================

MIN_CREDENTIAL_LENGTH = 10

# Fuzzy search needs at least two characters and something more specific
# than the bare words for "company" / "limited company"
MIN_SEARCH_KEYWORD_LENGTH = 2
FORBIDDEN_SEARCH_KEYWORDS = frozenset({"公司", "有限公司"})

LEGAL_DOCUMENT_MATCH_TYPES = ("litigant", "judge")

# Per-request credential locations (HTTP transports)
APP_KEY_HEADER = "x-qixin-app-key"
SECRET_KEY_HEADER = "x-qixin-secret-key"
APP_KEY_QUERY = "app_key"
SECRET_KEY_QUERY = "secret_key"


# =============================================================================
# CREDENTIALS
# =============================================================================

def validate_credentials(app_key: str, secret_key: str) -> None:
    """
    Check the credential pair format.

    Raises:
        QixinError(INVALID_CREDENTIAL): Either value empty, not a string,
            or shorter than 10 characters
    """
    if not app_key or not isinstance(app_key, str):
        raise QixinError(ErrorKind.INVALID_CREDENTIAL, "Invalid appkey: appkey must be a non-empty string")
    if not secret_key or not isinstance(secret_key, str):
        raise QixinError(ErrorKind.INVALID_CREDENTIAL, "Invalid secretKey: secretKey must be a non-empty string")
    if len(app_key) < MIN_CREDENTIAL_LENGTH:
        raise QixinError(ErrorKind.INVALID_CREDENTIAL, "Invalid appkey: appkey length is too short")
    if len(secret_key) < MIN_CREDENTIAL_LENGTH:
        raise QixinError(ErrorKind.INVALID_CREDENTIAL, "Invalid secretKey: secretKey length is too short")


def parse_authorization_header(value: str) -> Credentials | None:
    """
    Parse `Bearer appkey:secret` or `Basic base64(appkey:secret)`.

    Returns:
        Credentials (not yet format-checked), or None for an unsupported scheme
        or undecodable payload
    """
    scheme, _, payload = value.strip().partition(" ")
    scheme = scheme.lower()
    if scheme == "bearer":
        pair = payload.strip()
    elif scheme == "basic":
        try:
            pair = base64.b64decode(payload.strip(), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None
    else:
        return None

    app_key, sep, secret_key = pair.partition(":")
    if not sep:
        return None
    return Credentials(app_key=app_key, secret_key=secret_key)


def credentials_from_request(
    headers: Mapping[str, str],
    query_params: Mapping[str, str],
) -> Credentials | None:
    """
    Resolve per-request credentials for the HTTP transports.

    Checked in order:
    1. X-Qixin-App-Key + X-Qixin-Secret-Key headers
    2. Authorization header (Bearer / Basic)
    3. app_key + secret_key query parameters

    Returns:
        Validated Credentials, or None when the request carries none
        (the server's configured credentials apply)

    Raises:
        QixinError(INVALID_CREDENTIAL): Credentials present but malformed
    """
    header_key = headers.get(APP_KEY_HEADER)
    header_secret = headers.get(SECRET_KEY_HEADER)
    if header_key and header_secret:
        _check_request_credentials(header_key, header_secret, "Invalid credentials in headers")
        return Credentials(header_key, header_secret)

    authorization = headers.get("authorization")
    if authorization:
        parsed = parse_authorization_header(authorization)
        if parsed is None:
            raise QixinError(ErrorKind.INVALID_CREDENTIAL, "Invalid Authorization header")
        _check_request_credentials(parsed.app_key, parsed.secret_key, "Invalid Authorization header")
        return parsed

    query_key = query_params.get(APP_KEY_QUERY)
    query_secret = query_params.get(SECRET_KEY_QUERY)
    if query_key and query_secret:
        _check_request_credentials(query_key, query_secret, "Invalid credentials in query parameters")
        return Credentials(query_key, query_secret)

    return None


def _check_request_credentials(app_key: str, secret_key: str, message: str) -> None:
    try:
        validate_credentials(app_key, secret_key)
    except QixinError as e:
        raise QixinError(ErrorKind.INVALID_CREDENTIAL, message) from e


# =============================================================================
# QUERY ARGUMENTS
# =============================================================================

def require_text(value: object, field: str = "keyword") -> str:
    """
    Trim and require a non-empty keyword/name.

    Returns:
        The trimmed value

    Raises:
        QixinError(INVALID_ARGUMENT): Missing, not a string, or blank
    """
    if not isinstance(value, str) or not value.strip():
        raise QixinError(ErrorKind.INVALID_ARGUMENT, f"{field} must be a non-empty string")
    return value.strip()


def validate_search_keyword(value: object) -> str:
    """
    Fuzzy-search keyword: at least 2 characters, not a bare "公司"/"有限公司".

    Raises:
        QixinError(INVALID_ARGUMENT)
    """
    if not isinstance(value, str) or len(value.strip()) < MIN_SEARCH_KEYWORD_LENGTH:
        raise QixinError(
            ErrorKind.INVALID_ARGUMENT,
            f"keyword must be at least {MIN_SEARCH_KEYWORD_LENGTH} characters",
        )
    keyword = value.strip()
    if keyword in FORBIDDEN_SEARCH_KEYWORDS:
        raise QixinError(
            ErrorKind.INVALID_ARGUMENT,
            'keyword may not be just "公司" or "有限公司"',
        )
    return keyword


def validate_skip(skip: object) -> int | None:
    """Offset for paged endpoints: None or a non-negative integer."""
    if skip is None:
        return None
    if isinstance(skip, bool) or not isinstance(skip, int) or skip < 0:
        raise QixinError(ErrorKind.INVALID_ARGUMENT, "skip must be a non-negative integer")
    return skip


def validate_legal_match_type(match_type: str | None) -> str | None:
    """Legal document lookups match either the litigant or the judge."""
    if not match_type:
        return None
    if match_type not in LEGAL_DOCUMENT_MATCH_TYPES:
        raise QixinError(
            ErrorKind.INVALID_ARGUMENT,
            f"matchType must be one of {list(LEGAL_DOCUMENT_MATCH_TYPES)}, got {match_type!r}",
        )
    return match_type
