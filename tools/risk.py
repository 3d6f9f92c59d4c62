"""
Risk and compliance queries — what a company is entangled in.

Executed persons, dishonest executed persons, court judgments, administrative
penalties, serious violations, outbound guarantees. The list endpoints page
with `skip` (20 rows per page unless noted).
"""

from adapters.qixin import QixinClient
from models import QueryOutcome
from validation import require_text, validate_legal_match_type, validate_skip

from .common import run_query

EXECUTED_PATH = "/execution/getExecutedpersonListByName"
DISHONEST_PATH = "/execution/getExecutionListByName"
LEGAL_DOCUMENTS_PATH = "/lawsuit/getLawsuitListByName"
ADMIN_PENALTY_PATH = "/v2/adminPunish/getAdminPunishByName"
SERIOUS_ILLEGAL_PATH = "/enterprise/getSeriousIllegalByName"
GUARANTEE_PATH = "/qc/getGuaranteeList"


async def do_get_executed_enterprise(
    client: QixinClient, name: str, skip: int | None = None,
) -> QueryOutcome:
    """Enforcement cases against the enterprise (10 rows per page)."""
    return await run_query(
        client, "get_executed_enterprise", EXECUTED_PATH,
        lambda: {"name": require_text(name, "name"), "skip": validate_skip(skip)},
    )


async def do_get_dishonest_enterprise(
    client: QixinClient, keyword: str, skip: int | None = None,
) -> QueryOutcome:
    return await run_query(
        client, "get_dishonest_enterprise", DISHONEST_PATH,
        lambda: {"keyword": require_text(keyword, "keyword"), "skip": validate_skip(skip)},
    )


async def do_get_legal_documents(
    client: QixinClient,
    name: str,
    match_type: str | None = None,
    skip: int | None = None,
) -> QueryOutcome:
    """
    Court judgment list.

    Args:
        name: Enterprise name
        match_type: 'litigant' (party to the case) or 'judge'
        skip: Offset into the result list
    """
    return await run_query(
        client, "get_legal_documents", LEGAL_DOCUMENTS_PATH,
        lambda: {
            "name": require_text(name, "name"),
            "matchType": validate_legal_match_type(match_type),
            "skip": validate_skip(skip),
        },
    )


async def do_get_admin_penalty(
    client: QixinClient, keyword: str, skip: int | None = None,
) -> QueryOutcome:
    return await run_query(
        client, "get_admin_penalty", ADMIN_PENALTY_PATH,
        lambda: {"keyword": require_text(keyword, "keyword"), "skip": validate_skip(skip)},
    )


async def do_get_serious_illegal(client: QixinClient, name: str) -> QueryOutcome:
    return await run_query(
        client, "get_serious_illegal", SERIOUS_ILLEGAL_PATH,
        lambda: {"name": require_text(name, "name")},
    )


async def do_get_guarantee_list(
    client: QixinClient, name: str, skip: int | None = None,
) -> QueryOutcome:
    return await run_query(
        client, "get_guarantee_list", GUARANTEE_PATH,
        lambda: {"name": require_text(name, "name"), "skip": validate_skip(skip)},
    )
