"""
Tools — query tool implementations.

Each function validates its arguments, dispatches through QixinClient and
returns QueryResult | QueryError. server.py provides thin @mcp.tool()
wrappers that call into these; cli.py calls them directly.

Two groups:
- enterprise: basic info, search, contact, size, genealogy
- risk: executed, dishonest, legal documents, penalties, violations, guarantees
"""

from .enterprise import (
    do_get_basic_info,
    do_search_enterprise,
    do_get_contact_info,
    do_get_enterprise_size,
    do_get_genealogy3,
)
from .risk import (
    do_get_executed_enterprise,
    do_get_dishonest_enterprise,
    do_get_legal_documents,
    do_get_admin_penalty,
    do_get_serious_illegal,
    do_get_guarantee_list,
)

# Single source of truth for tool names -> implementations.
TOOLS = {
    "get_enterprise_basic_info": do_get_basic_info,
    "search_enterprise": do_search_enterprise,
    "get_enterprise_contact": do_get_contact_info,
    "get_enterprise_size": do_get_enterprise_size,
    "get_executed_enterprise": do_get_executed_enterprise,
    "get_dishonest_enterprise": do_get_dishonest_enterprise,
    "get_legal_documents": do_get_legal_documents,
    "get_enterprise_genealogy3": do_get_genealogy3,
    "get_admin_penalty": do_get_admin_penalty,
    "get_serious_illegal": do_get_serious_illegal,
    "get_guarantee_list": do_get_guarantee_list,
}

__all__ = [
    "do_get_basic_info", "do_search_enterprise", "do_get_contact_info",
    "do_get_enterprise_size", "do_get_genealogy3", "do_get_executed_enterprise",
    "do_get_dishonest_enterprise", "do_get_legal_documents", "do_get_admin_penalty",
    "do_get_serious_illegal", "do_get_guarantee_list", "TOOLS",
]
