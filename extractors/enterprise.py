"""
Enterprise payload extraction — canonical field names for upstream payloads.

The basic-info endpoint has returned the same facts under more than one
spelling. normalize_basic_info() fills the canonical fields from whichever
spelling is present and keeps every upstream field alongside them.

The alias list is best-effort: an unknown spelling simply passes through.
"""

from typing import Any

# canonical field -> alternate upstream spellings, in preference order
BASIC_INFO_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("entName",),
    "creditCode": ("creditNo",),
    "legalPerson": ("legalPersonName",),
    "registeredCapital": ("regCapital",),
    "establishDate": ("esDate",),
    "businessStatus": ("status",),
    "businessScope": ("scope",),
    "registeredAddress": ("address",),
}


def coalesce_fields(
    data: dict[str, Any],
    aliases: dict[str, tuple[str, ...]],
) -> dict[str, Any]:
    """
    Union of `data` and its canonical fields.

    A canonical field keeps its own value when truthy; otherwise it takes the
    first truthy alias, or "" when none is set.
    """
    result = dict(data)
    for canonical, alternates in aliases.items():
        if data.get(canonical):
            continue
        result[canonical] = next(
            (data[alt] for alt in alternates if data.get(alt)),
            "",
        )
    return result


def normalize_basic_info(data: Any) -> Any:
    """Apply the basic-info alias table; non-dict payloads pass through untouched."""
    if not isinstance(data, dict):
        return data
    return coalesce_fields(data, BASIC_INFO_ALIASES)


def summarize_payload(data: Any) -> dict[str, Any]:
    """
    Small summary of a query payload for log lines.

    Picks out the counters the list endpoints return (total, num, items).
    """
    if not isinstance(data, dict):
        return {}
    summary: dict[str, Any] = {}
    for key in ("name", "total", "num", "node_num", "tag_name"):
        if data.get(key) not in (None, ""):
            summary[key] = data[key]
    items = data.get("items")
    if isinstance(items, list):
        summary["count"] = len(items)
    return summary
