"""
Qixin API Adapter — signed, retried calls to the enterprise-information API.

Every logical call runs:
    sign → send → await → (retryable failure → backoff → sign again)

and ends in a QueryResult or a QueryError. QixinError never escapes
QixinClient.request(); callers get a tagged result instead.

Upstream envelope: {"status": "200", "message": "...", "data": {...}, "error_code": "..."}
"""

import asyncio
from typing import Any, Awaitable, Callable

import httpx

from adapters.signature import build_auth_headers, current_timestamp
from config import DEFAULT_BASE_URL, DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT_MS, Settings
from logging_config import logger, log_api_call, log_api_result
from models import Credentials, ErrorKind, QixinError, QueryError, QueryOutcome, QueryResult
from retry import call_with_retry

__all__ = [
    "QixinClient",
    "SUCCESS_STATUSES",
]

# Envelope status values that mean the query succeeded
SUCCESS_STATUSES = frozenset({"200", "success"})

USER_AGENT = "qixin-mcp/1.0"


class QixinClient:
    """
    Dispatcher for the Qixin REST API.

    Holds one immutable credential pair. Concurrent calls share nothing else
    but the pooled httpx.AsyncClient, which is safe for concurrent use.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        http: httpx.AsyncClient | None = None,
        clock: Callable[[], int] = current_timestamp,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        self.max_retries = max_retries
        self._clock = clock
        self._sleep = sleep
        self._http = http or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_ms / 1000),
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "QixinClient":
        """Client for the server's configured credentials."""
        return cls(
            settings.credentials,
            base_url=settings.base_url,
            timeout_ms=settings.timeout_ms,
            max_retries=settings.max_retries,
            **kwargs,
        )

    def with_credentials(self, credentials: Credentials) -> "QixinClient":
        """Same configuration and connection pool, different credential pair."""
        return QixinClient(
            credentials,
            base_url=self.base_url,
            timeout_ms=self.timeout_ms,
            max_retries=self.max_retries,
            http=self._http,
            clock=self._clock,
            sleep=self._sleep,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        method: str = "GET",
        max_retries: int | None = None,
        deadline_s: float | None = None,
        normalize: Callable[[Any], Any] | None = None,
    ) -> QueryOutcome:
        """
        Execute one logical upstream call.

        Args:
            path: Endpoint path relative to the base URL
            params: Query string (GET) or JSON body (other verbs); None values dropped
            method: HTTP verb
            max_retries: Override the client's retry budget for this call
            deadline_s: Overall deadline across all attempts and backoff
            normalize: Applied to `data` on success (field aliasing)

        Returns:
            QueryResult with the upstream `data`, or QueryError
        """
        retries = self.max_retries if max_retries is None else max_retries
        clean = {k: v for k, v in (params or {}).items() if v is not None}
        attempts = 0

        async def attempt() -> Any:
            nonlocal attempts
            attempts += 1
            return await self._send(method, path, clean)

        try:
            if deadline_s is None:
                data = await call_with_retry(
                    attempt, max_retries=retries, label=path, sleep=self._sleep,
                )
            else:
                async with asyncio.timeout(deadline_s):
                    data = await call_with_retry(
                        attempt, max_retries=retries, label=path, sleep=self._sleep,
                    )
        except QixinError as e:
            return QueryError.from_exception(e)
        except TimeoutError:
            logger.warning(f"{path} cancelled: deadline of {deadline_s}s exceeded after {attempts} attempts")
            return QueryError(
                kind=ErrorKind.CANCELLED,
                message=f"Request cancelled: deadline of {deadline_s}s exceeded",
                code="CANCELLED",
            )
        except asyncio.CancelledError:
            logger.info(f"{path} cancelled by caller after {attempts} attempts")
            raise

        if normalize is not None:
            data = normalize(data)
        return QueryResult(data=data, path=path, attempts=attempts)

    async def _send(self, method: str, path: str, params: dict[str, Any]) -> Any:
        """One signed attempt. Returns `data` or raises."""
        # Signed per attempt: a retried request never reuses a timestamp
        headers = build_auth_headers(
            self.credentials.app_key, self.credentials.secret_key, clock=self._clock,
        )
        log_api_call(method, path, **params)

        is_get = method.upper() == "GET"
        response = await self._http.request(
            method,
            f"{self.base_url}{path}",
            params=params if is_get else None,
            json=None if is_get else params,
            headers=headers,
            follow_redirects=True,
        )
        response.raise_for_status()

        try:
            body = response.json()
        except ValueError:
            raise QixinError(
                ErrorKind.UNKNOWN,
                f"Unparseable response from {path}",
                status_code=response.status_code,
            )
        if not isinstance(body, dict):
            raise QixinError(ErrorKind.UNKNOWN, f"Unexpected response shape from {path}")

        status = str(body.get("status", ""))
        if status not in SUCCESS_STATUSES:
            raise QixinError(
                ErrorKind.UPSTREAM_CLIENT_ERROR,
                body.get("message") or "Query failed",
                code=body.get("error_code"),
                status_code=int(status) if status.isdigit() else None,
            )

        data = body.get("data")
        if data is None:
            raise QixinError(ErrorKind.EMPTY_RESULT, "No matching enterprise information found")

        log_api_result(path, data.get("total") if isinstance(data, dict) else None)
        return data
