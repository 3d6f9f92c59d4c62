"""
Tests for retry helpers.

Tests cover:
- is_retryable_status: which HTTP statuses are retried
- backoff_delay_ms: capped exponential schedule
- _convert_to_qixin_error: exception → QixinError mapping
- call_with_retry: retry loop, exhaustion, terminal errors, cancellation
"""

import asyncio
import logging

import httpx
import pytest

from models import ErrorKind, QixinError
from retry import (
    BASE_DELAY_MS,
    MAX_DELAY_MS,
    RETRYABLE_STATUS_CODES,
    _convert_to_qixin_error,
    backoff_delay_ms,
    call_with_retry,
    is_retryable_status,
)
from tests.helpers import FakeSleep


def _status_error(status: int, body: dict | None = None) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.test/APIService/enterprise/getBasicInfo")
    response = httpx.Response(status, json=body if body is not None else {}, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestIsRetryableStatus:
    """Tests for is_retryable_status function."""

    @pytest.mark.parametrize("status", [500, 502, 503, 504, 599])
    def test_server_errors_are_retryable(self, status: int) -> None:
        assert is_retryable_status(status)

    def test_rate_limited_is_retryable(self) -> None:
        assert is_retryable_status(429)
        assert 429 in RETRYABLE_STATUS_CODES

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_client_errors_are_terminal(self, status: int) -> None:
        assert not is_retryable_status(status)


class TestBackoffDelay:
    """Tests for backoff_delay_ms function."""

    def test_schedule(self) -> None:
        assert [backoff_delay_ms(n) for n in range(6)] == [1000, 2000, 4000, 8000, 10000, 10000]

    def test_first_retry_uses_base_delay(self) -> None:
        assert backoff_delay_ms(0) == BASE_DELAY_MS

    def test_never_exceeds_cap(self) -> None:
        assert all(backoff_delay_ms(n) <= MAX_DELAY_MS for n in range(20))

    def test_custom_base_and_cap(self) -> None:
        assert backoff_delay_ms(3, base_delay_ms=10, max_delay_ms=50) == 50


class TestConvertToQixinError:
    """Tests for _convert_to_qixin_error function."""

    def test_qixin_error_passes_through(self) -> None:
        original = QixinError(ErrorKind.EMPTY_RESULT, "nothing")
        assert _convert_to_qixin_error(original) is original

    def test_429_becomes_rate_limited(self) -> None:
        error = _convert_to_qixin_error(_status_error(429))
        assert error.kind == ErrorKind.RATE_LIMITED
        assert error.retryable
        assert error.status_code == 429

    def test_5xx_becomes_upstream_server_error(self) -> None:
        error = _convert_to_qixin_error(_status_error(503))
        assert error.kind == ErrorKind.UPSTREAM_SERVER_ERROR
        assert error.retryable
        assert error.message == "API request failed: 503"
        assert error.code == "API_ERROR"

    @pytest.mark.parametrize("status", [400, 404, 429, 500, 503])
    def test_retryable_kind_agrees_with_status_rule(self, status: int) -> None:
        error = _convert_to_qixin_error(_status_error(status))
        assert error.retryable == is_retryable_status(status)

    def test_4xx_becomes_upstream_client_error(self) -> None:
        error = _convert_to_qixin_error(_status_error(404))
        assert error.kind == ErrorKind.UPSTREAM_CLIENT_ERROR
        assert not error.retryable

    def test_vendor_message_and_code_preserved(self) -> None:
        error = _convert_to_qixin_error(
            _status_error(403, {"message": "appkey无效", "error_code": "1002"})
        )
        assert error.message == "appkey无效"
        assert error.code == "1002"

    def test_timeout_becomes_transport_failure(self) -> None:
        error = _convert_to_qixin_error(httpx.ReadTimeout("slow"))
        assert error.kind == ErrorKind.TRANSPORT_FAILURE
        assert error.code == "NETWORK_ERROR"
        assert error.retryable

    def test_connect_error_becomes_transport_failure(self) -> None:
        error = _convert_to_qixin_error(httpx.ConnectError("refused"))
        assert error.kind == ErrorKind.TRANSPORT_FAILURE

    def test_connection_error_becomes_transport_failure(self) -> None:
        error = _convert_to_qixin_error(ConnectionError("reset"))
        assert error.kind == ErrorKind.TRANSPORT_FAILURE

    def test_unknown_exception_becomes_unknown(self) -> None:
        error = _convert_to_qixin_error(ValueError("weird"))
        assert error.kind == ErrorKind.UNKNOWN
        assert error.code == "UNKNOWN_ERROR"
        assert not error.retryable


class TestCallWithRetry:
    """Tests for call_with_retry function."""

    @pytest.mark.asyncio
    async def test_successful_call_returns_result(self) -> None:
        sleep = FakeSleep()

        async def succeed() -> str:
            return "ok"

        assert await call_with_retry(succeed, max_retries=3, sleep=sleep) == "ok"
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self) -> None:
        sleep = FakeSleep()
        attempts = [0]

        async def fail_twice() -> str:
            attempts[0] += 1
            if attempts[0] < 3:
                raise ConnectionError("Temporary failure")
            return "success"

        assert await call_with_retry(fail_twice, max_retries=3, sleep=sleep) == "success"
        assert attempts[0] == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_terminal_error_not_retried(self) -> None:
        sleep = FakeSleep()
        attempts = [0]

        async def not_found() -> str:
            attempts[0] += 1
            raise _status_error(404)

        with pytest.raises(QixinError) as exc_info:
            await call_with_retry(not_found, max_retries=3, sleep=sleep)

        assert exc_info.value.kind == ErrorKind.UPSTREAM_CLIENT_ERROR
        assert attempts[0] == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_raises_after_retries_exhausted(self) -> None:
        sleep = FakeSleep()
        attempts = [0]

        async def always_fail() -> str:
            attempts[0] += 1
            raise _status_error(500)

        with pytest.raises(QixinError) as exc_info:
            await call_with_retry(always_fail, max_retries=3, sleep=sleep)

        assert exc_info.value.kind == ErrorKind.UPSTREAM_SERVER_ERROR
        assert attempts[0] == 4
        assert sleep.delays == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_zero_retries_is_single_attempt(self) -> None:
        sleep = FakeSleep()
        attempts = [0]

        async def always_fail() -> str:
            attempts[0] += 1
            raise ConnectionError("down")

        with pytest.raises(QixinError):
            await call_with_retry(always_fail, max_retries=0, sleep=sleep)
        assert attempts[0] == 1

    @pytest.mark.asyncio
    async def test_exhaustion_log_names_http_status(self, caplog: pytest.LogCaptureFixture) -> None:
        async def unavailable() -> str:
            raise _status_error(503)

        with caplog.at_level(logging.ERROR, logger="qixin"):
            with pytest.raises(QixinError):
                await call_with_retry(unavailable, max_retries=1, label="/enterprise/getBasicInfo", sleep=FakeSleep())

        assert "/enterprise/getBasicInfo failed after 2 attempts (HTTP 503)" in caplog.text

    @pytest.mark.asyncio
    async def test_original_exception_chained(self) -> None:
        async def boom() -> str:
            raise ConnectionError("reset by peer")

        with pytest.raises(QixinError) as exc_info:
            await call_with_retry(boom, max_retries=0, sleep=FakeSleep())
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_cancellation_not_retried(self) -> None:
        sleep = FakeSleep()
        attempts = [0]

        async def cancelled() -> str:
            attempts[0] += 1
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await call_with_retry(cancelled, max_retries=3, sleep=sleep)
        assert attempts[0] == 1
        assert sleep.delays == []
