"""
Enterprise profile queries — who a company is.

basic info, fuzzy search, contact details, size, three-level genealogy.
"""

from adapters.qixin import QixinClient
from extractors.enterprise import normalize_basic_info
from models import QueryOutcome
from validation import require_text, validate_search_keyword, validate_skip

from .common import run_query

BASIC_INFO_PATH = "/enterprise/getBasicInfo"
SEARCH_PATH = "/v2/search/advSearch"
CONTACT_PATH = "/enterprise/getContactInfo"
SIZE_PATH = "/enterprise/getEntSize"
GENEALOGY3_PATH = "/relation/getRelationInfoByName"


async def do_get_basic_info(client: QixinClient, keyword: str) -> QueryOutcome:
    """
    Registration record for one enterprise.

    The payload is returned with canonical field names filled in
    (name, creditCode, legalPerson, ...) next to the upstream fields.
    """
    return await run_query(
        client, "get_enterprise_basic_info", BASIC_INFO_PATH,
        lambda: {"keyword": require_text(keyword, "keyword")},
        normalize=normalize_basic_info,
    )


async def do_search_enterprise(
    client: QixinClient,
    keyword: str,
    match_type: str | None = None,
    region: str | None = None,
    skip: int | None = None,
) -> QueryOutcome:
    """
    Fuzzy search, 10 results per page.

    Args:
        keyword: At least 2 characters; bare "公司"/"有限公司" is rejected
        match_type: Restrict matching to one field (partner, oper, member, ...)
        region: Province (2 digits), city (4) or district (6) code
        skip: Offset into the result list
    """
    return await run_query(
        client, "search_enterprise", SEARCH_PATH,
        lambda: {
            "keyword": validate_search_keyword(keyword),
            "matchType": match_type or None,
            "region": region or None,
            "skip": validate_skip(skip),
        },
    )


async def do_get_contact_info(client: QixinClient, keyword: str) -> QueryOutcome:
    """Phone numbers, emails and addresses on record."""
    return await run_query(
        client, "get_enterprise_contact", CONTACT_PATH,
        lambda: {"keyword": require_text(keyword, "keyword")},
    )


async def do_get_enterprise_size(client: QixinClient, name: str) -> QueryOutcome:
    return await run_query(
        client, "get_enterprise_size", SIZE_PATH,
        lambda: {"name": require_text(name, "name")},
    )


async def do_get_genealogy3(client: QixinClient, name: str) -> QueryOutcome:
    """Shareholders and investments, three levels deep."""
    return await run_query(
        client, "get_enterprise_genealogy3", GENEALOGY3_PATH,
        lambda: {"name": require_text(name, "name")},
    )
