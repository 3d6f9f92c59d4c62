"""
Shared plumbing for the query tools: validate, dispatch, log the outcome.
"""

from typing import Any, Callable

from adapters.qixin import QixinClient
from extractors.enterprise import summarize_payload
from logging_config import logger
from models import QixinError, QueryError, QueryOutcome, QueryResult


async def run_query(
    client: QixinClient,
    tool: str,
    path: str,
    build_params: Callable[[], dict[str, Any]],
    *,
    normalize: Callable[[Any], Any] | None = None,
) -> QueryOutcome:
    """
    Validate arguments, then dispatch one upstream query.

    Args:
        client: Dispatcher bound to the credentials for this call
        tool: Tool name (log lines only)
        path: Upstream endpoint
        build_params: Validates the tool arguments and returns query params;
            raises QixinError(INVALID_ARGUMENT) before any network call
        normalize: Optional payload reshaping (field aliasing)

    Returns:
        QueryResult or QueryError
    """
    try:
        params = build_params()
    except QixinError as e:
        logger.warning(f"{tool}: rejected arguments: {e.message}")
        return QueryError.from_exception(e)

    logger.info(f"{tool}: {params}")
    outcome = await client.request(path, params, normalize=normalize)

    if isinstance(outcome, QueryResult):
        logger.info(f"{tool}: ok {summarize_payload(outcome.data)}")
    else:
        logger.error(f"{tool}: {outcome.kind.value} [{outcome.code}] {outcome.message}")
    return outcome
