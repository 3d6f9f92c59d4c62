"""
Shared test helpers for qixin-mcp.

Centralizes the HTTP stubbing that repeats across test files.
"""

from dataclasses import dataclass, field
from typing import Any

import httpx

from adapters.qixin import QixinClient
from models import Credentials


def envelope(data: Any = None, *, status: str = "200", message: str = "操作成功", **extra: Any) -> dict:
    """Upstream response body in the Qixin envelope shape."""
    body = {"status": status, "message": message, "data": data}
    body.update(extra)
    return body


@dataclass
class RecordingTransport:
    """Scripted upstream: one reply per request, the last reply repeating.

    Each reply is one of:
    - (status_code, json_body) tuple, optionally with a third headers dict
    - (status_code, str) tuple for a raw text body
    - an httpx.TransportError subclass (raised with the request attached)
    """
    replies: list[Any]
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies[min(len(self.requests), len(self.replies)) - 1]
        if isinstance(reply, type) and issubclass(reply, httpx.TransportError):
            raise reply("simulated transport failure", request=request)
        status, body, *rest = reply
        headers = rest[0] if rest else None
        if isinstance(body, str):
            return httpx.Response(status, text=body, headers=headers)
        return httpx.Response(status, json=body, headers=headers)

    @property
    def count(self) -> int:
        return len(self.requests)

    def header_values(self, name: str) -> list[str]:
        return [r.headers[name] for r in self.requests]


class FakeSleep:
    """Stands in for asyncio.sleep: records requested delays, returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_client(
    credentials: Credentials,
    transport: RecordingTransport,
    *,
    sleep: Any = None,
    max_retries: int = 3,
    base_url: str = "https://api.test/APIService",
    **kwargs: Any,
) -> QixinClient:
    """QixinClient wired to a RecordingTransport."""
    http = httpx.AsyncClient(transport=httpx.MockTransport(transport))
    if sleep is not None:
        kwargs["sleep"] = sleep
    return QixinClient(
        credentials,
        base_url=base_url,
        max_retries=max_retries,
        http=http,
        **kwargs,
    )
