"""
Extractors — Pure functions for payload reshaping.

No MCP awareness, no HTTP calls. Just transform input → output.
Easily testable with fixtures.
"""

from .enterprise import (
    BASIC_INFO_ALIASES,
    coalesce_fields,
    normalize_basic_info,
    summarize_payload,
)

__all__ = [
    "BASIC_INFO_ALIASES",
    "coalesce_fields",
    "normalize_basic_info",
    "summarize_payload",
]
