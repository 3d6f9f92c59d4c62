#!/usr/bin/env python3
"""
Qixin Enterprise Information MCP Server

Exposes 11 read-only Qixin (启信宝) queries as MCP tools.

Transports (same tool surface):
- stdio (default)
- SSE: --sse or MCP_SSE=true            GET /mcp, POST /messages/
- streamable HTTP: --streamable-http or MCP_STREAMABLE_HTTP=true   POST /stream

Architecture:
- adapters/: Signing and retried dispatch (QixinClient)
- extractors/: Pure payload reshaping (field aliasing)
- tools/: Tool implementations (validation + dispatch)
- server.py: Thin MCP wrappers, HTTP auth and transports (this file)

Every tool returns either the upstream `data` payload or
{"error": true, "kind", "message", "code"}; nothing is raised to the peer.
"""

import argparse
import os
import signal
import sys
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

import uvicorn
from mcp.server.fastmcp import Context, FastMCP
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from adapters.qixin import QixinClient
from config import SERVER_NAME, SERVER_VERSION, Settings, load_settings
from logging_config import configure_logging, logger
from models import ConfigError, Credentials, QixinError, QueryError, QueryOutcome
from tools import (
    do_get_basic_info, do_search_enterprise, do_get_contact_info,
    do_get_enterprise_size, do_get_genealogy3, do_get_executed_enterprise,
    do_get_dishonest_enterprise, do_get_legal_documents, do_get_admin_penalty,
    do_get_serious_illegal, do_get_guarantee_list,
)
from validation import APP_KEY_HEADER, SECRET_KEY_HEADER, credentials_from_request

SSE_PATH = "/mcp"
MESSAGE_PATH = "/messages/"
STREAMABLE_HTTP_PATH = "/stream"

# Routes that carry MCP traffic and therefore accept per-request credentials
_PROTECTED_PREFIXES = (SSE_PATH, MESSAGE_PATH.rstrip("/"), STREAMABLE_HTTP_PATH)


# ============================================================================
# PER-REQUEST CREDENTIALS
# ============================================================================

def request_credentials(ctx: Context | None) -> Credentials | None:
    """
    Credentials carried by the HTTP request behind this tool call.

    None for stdio, for calls outside a request, and for HTTP requests
    that carry no credentials (the server's own credentials apply).

    Raises:
        QixinError(INVALID_CREDENTIAL): Credentials present but malformed
    """
    if ctx is None:
        return None
    try:
        request = ctx.request_context.request
    except (AttributeError, ValueError, LookupError):
        return None
    if not isinstance(request, Request):
        return None
    return credentials_from_request(request.headers, request.query_params)


class CredentialGuard:
    """
    ASGI middleware: reject MCP requests with malformed credentials (401).

    Requests without credentials pass through and use the server defaults.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"].startswith(_PROTECTED_PREFIXES):
            request = Request(scope)
            try:
                credentials_from_request(request.headers, request.query_params)
            except QixinError as e:
                logger.warning(f"Authentication failed for {request.method} {scope['path']}: {e.message}")
                response = JSONResponse(
                    {"error": "Authentication failed", "message": e.message},
                    status_code=401,
                )
                await response(scope, receive, send)
                return
        await self.app(scope, receive, send)


# ============================================================================
# SERVER FACTORY
# ============================================================================

def create_server(settings: Settings, client: QixinClient | None = None) -> FastMCP:
    """
    Build the MCP server with all tools, resources and HTTP routes registered.

    Args:
        settings: Validated configuration (credentials, limits, HTTP binding)
        client: Dispatcher to use (default: one built from settings)
    """
    client = client or QixinClient.from_settings(settings)

    mcp = FastMCP(
        SERVER_NAME,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        sse_path=SSE_PATH,
        message_path=MESSAGE_PATH,
        streamable_http_path=STREAMABLE_HTTP_PATH,
    )

    async def dispatch(
        ctx: Context | None,
        handler: Callable[..., Awaitable[QueryOutcome]],
        **kwargs: Any,
    ) -> dict[str, Any]:
        try:
            credentials = request_credentials(ctx)
        except QixinError as e:
            return QueryError.from_exception(e).to_dict()
        bound = client.with_credentials(credentials) if credentials else client
        return (await handler(bound, **kwargs)).to_dict()

    # ------------------------------------------------------------------------
    # TOOLS (thin wrappers)
    # ------------------------------------------------------------------------

    @mcp.tool()
    async def get_enterprise_basic_info(keyword: str, ctx: Context) -> dict[str, Any]:
        """
        Look up an enterprise's registration record (企业基本信息).

        Args:
            keyword: Enterprise name, unified social credit code or registration number

        Returns:
            name, creditCode, legalPerson, registeredCapital, establishDate,
            businessStatus, businessScope, registeredAddress, plus every other
            field the registry returns
        """
        return await dispatch(ctx, do_get_basic_info, keyword=keyword)

    @mcp.tool()
    async def search_enterprise(
        keyword: str,
        ctx: Context,
        matchType: str | None = None,
        region: str | None = None,
        skip: int | None = None,
    ) -> dict[str, Any]:
        """
        Fuzzy enterprise search (企业模糊搜索), 10 results per page.

        Args:
            keyword: At least 2 characters; "公司" or "有限公司" alone is rejected
            matchType: Field to match: partner (shareholder), oper (legal representative),
                member (executive), contact, scope, ename (company name), patent,
                copyright, software, trademark, domain, product
            region: Region code: province (2 digits), city (4) or district (6)
            skip: Number of results to skip (default 0)

        Returns:
            total, num and the matching items
        """
        return await dispatch(
            ctx, do_search_enterprise,
            keyword=keyword, match_type=matchType, region=region, skip=skip,
        )

    @mcp.tool()
    async def get_enterprise_contact(keyword: str, ctx: Context) -> dict[str, Any]:
        """
        Contact details on record (企业联系方式): phones, emails, addresses, websites.

        Args:
            keyword: Full enterprise name, registration number or unified social credit code
        """
        return await dispatch(ctx, do_get_contact_info, keyword=keyword)

    @mcp.tool()
    async def get_enterprise_size(name: str, ctx: Context) -> dict[str, Any]:
        """
        Enterprise size classification (企业规模).

        Args:
            name: Full enterprise name, registration number or unified social credit code
        """
        return await dispatch(ctx, do_get_enterprise_size, name=name)

    @mcp.tool()
    async def get_executed_enterprise(
        name: str, ctx: Context, skip: int | None = None,
    ) -> dict[str, Any]:
        """
        Enforcement cases where the enterprise is the executed party (被执行企业).

        Args:
            name: Full enterprise name, registration number or unified social credit code
            skip: Number of rows to skip (default 0, 10 rows per page)
        """
        return await dispatch(ctx, do_get_executed_enterprise, name=name, skip=skip)

    @mcp.tool()
    async def get_dishonest_enterprise(
        keyword: str, ctx: Context, skip: int | None = None,
    ) -> dict[str, Any]:
        """
        Dishonest executed-party records (失信被执行企业).

        Args:
            keyword: Full enterprise name, registration number or unified social credit code
            skip: Number of rows to skip (default 0, 20 rows per page)
        """
        return await dispatch(ctx, do_get_dishonest_enterprise, keyword=keyword, skip=skip)

    @mcp.tool()
    async def get_legal_documents(
        name: str,
        ctx: Context,
        matchType: str | None = None,
        skip: int | None = None,
    ) -> dict[str, Any]:
        """
        Court judgment list (裁判文书).

        Args:
            name: Enterprise name
            matchType: 'litigant' (party to the case) or 'judge'
            skip: Number of rows to skip (first 20 when omitted)
        """
        return await dispatch(
            ctx, do_get_legal_documents, name=name, match_type=matchType, skip=skip,
        )

    @mcp.tool()
    async def get_enterprise_genealogy3(name: str, ctx: Context) -> dict[str, Any]:
        """
        Three-level enterprise genealogy (企业三层族谱): shareholders and investments.

        Args:
            name: Full enterprise name, registration number or unified social credit code
        """
        return await dispatch(ctx, do_get_genealogy3, name=name)

    @mcp.tool()
    async def get_admin_penalty(
        keyword: str, ctx: Context, skip: int | None = None,
    ) -> dict[str, Any]:
        """
        Administrative penalties (行政处罚).

        Args:
            keyword: Enterprise name
            skip: Number of rows to skip (default 0, 20 rows per page)
        """
        return await dispatch(ctx, do_get_admin_penalty, keyword=keyword, skip=skip)

    @mcp.tool()
    async def get_serious_illegal(name: str, ctx: Context) -> dict[str, Any]:
        """
        Serious violation listings (严重违法).

        Args:
            name: Full enterprise name, registration number or unified social credit code
        """
        return await dispatch(ctx, do_get_serious_illegal, name=name)

    @mcp.tool()
    async def get_guarantee_list(
        name: str, ctx: Context, skip: int | None = None,
    ) -> dict[str, Any]:
        """
        Outbound guarantees (对外担保).

        Args:
            name: Full enterprise name, registration number or unified social credit code
            skip: Number of rows to skip (first 20 when omitted)
        """
        return await dispatch(ctx, do_get_guarantee_list, name=name, skip=skip)

    # ------------------------------------------------------------------------
    # RESOURCES
    # ------------------------------------------------------------------------

    @mcp.resource("qixin://docs/overview")
    def docs_overview() -> str:
        """Overview of the Qixin MCP server."""
        return _OVERVIEW

    # ------------------------------------------------------------------------
    # HTTP ROUTES (SSE / streamable HTTP only)
    # ------------------------------------------------------------------------

    @mcp.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse({
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "transport": settings.transport,
        })

    @mcp.custom_route("/", methods=["GET"])
    async def root(request: Request) -> JSONResponse:
        if settings.transport == "sse":
            endpoints = {
                "sse": f"{SSE_PATH} (GET) - Server-Sent Events connection",
                "post": f"{MESSAGE_PATH} (POST) - Send messages to server",
            }
        else:
            endpoints = {
                "stream": f"{STREAMABLE_HTTP_PATH} (POST) - JSON-RPC requests with streaming responses",
            }
        endpoints["health"] = "/health - Health check"
        return JSONResponse({
            "message": f"Qixin MCP Server - {settings.transport} mode",
            "version": SERVER_VERSION,
            "endpoints": endpoints,
            "authentication": {
                "headers": f"{APP_KEY_HEADER} + {SECRET_KEY_HEADER}",
                "authorization": "Bearer appkey:secret or Basic base64(appkey:secret)",
                "query": "app_key + secret_key",
                "default": "server credentials when none supplied",
            },
        })

    return mcp


def build_http_app(mcp: FastMCP, transport: str) -> Starlette:
    """Starlette app for an HTTP transport, with credential guard and CORS."""
    app = mcp.sse_app() if transport == "sse" else mcp.streamable_http_app()
    app.add_middleware(CredentialGuard)
    # Added last so it is outermost: preflight requests never hit the guard
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Qixin-App-Key", "X-Qixin-Secret-Key", "Mcp-Session-Id"],
        expose_headers=["Mcp-Session-Id"],
        max_age=86400,
    )
    return app


_OVERVIEW = """# Qixin MCP Server

Enterprise information from Qixin (启信宝), as 11 read-only tools.

## Tools

| Tool | Looks up | Required | Optional |
|------|----------|----------|----------|
| `get_enterprise_basic_info` | Registration record | keyword | |
| `search_enterprise` | Fuzzy search | keyword (2+ chars) | matchType, region, skip |
| `get_enterprise_contact` | Contact details | keyword | |
| `get_enterprise_size` | Size classification | name | |
| `get_executed_enterprise` | Enforcement cases | name | skip |
| `get_dishonest_enterprise` | Dishonest executed parties | keyword | skip |
| `get_legal_documents` | Court judgments | name | matchType, skip |
| `get_enterprise_genealogy3` | Shareholders / investments | name | |
| `get_admin_penalty` | Administrative penalties | keyword | skip |
| `get_serious_illegal` | Serious violations | name | |
| `get_guarantee_list` | Outbound guarantees | name | skip |

## Errors

Failures come back as data, never as protocol errors:

```json
{"error": true, "kind": "empty_result", "message": "No matching enterprise information found", "code": "NO_DATA"}
```

| kind | meaning |
|------|---------|
| invalid_argument | keyword/name/skip rejected before calling upstream |
| invalid_credential | malformed app key or secret |
| empty_result | upstream found nothing |
| upstream_client_error | upstream rejected the query (message/code passed through) |
| upstream_server_error, rate_limited, transport_failure | still failing after retries |
| cancelled | deadline exceeded |
"""


# ============================================================================
# SERVER ENTRY POINT
# ============================================================================

def _shutdown_handler(signum: int, frame: object) -> None:
    """Handle termination signals by exiting immediately.

    os._exit() is required because sys.exit() raises SystemExit,
    which asyncio's event loop catches and ignores.
    """
    logger.info(f"Received signal {signum}, shutting down")
    os._exit(0)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Qixin enterprise information MCP server")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--sse", action="store_true", help="Serve over SSE (GET /mcp, POST /messages/)")
    mode.add_argument("--streamable-http", action="store_true", help="Serve streamable HTTP (POST /stream)")
    args = parser.parse_args(argv)

    transport = "sse" if args.sse else "streamable-http" if args.streamable_http else None
    try:
        settings = load_settings(transport=transport)
    except ConfigError as e:
        configure_logging()
        logger.error(f"Server failed to start: {e}")
        sys.exit(1)

    configure_logging(settings.log_level)
    signal.signal(signal.SIGTERM, _shutdown_handler)
    signal.signal(signal.SIGINT, _shutdown_handler)

    mcp = create_server(settings)

    if settings.transport == "stdio":
        logger.info("MCP server started (stdio)")
        mcp.run()
        return

    app = build_http_app(mcp, settings.transport)
    base = f"http://{settings.host}:{settings.port}"
    logger.info(f"MCP server starting ({settings.transport}) on {base}")
    if settings.transport == "sse":
        logger.info(f"  GET  {base}{SSE_PATH}  - SSE connection")
        logger.info(f"  POST {base}{MESSAGE_PATH}  - send messages")
    else:
        logger.info(f"  POST {base}{STREAMABLE_HTTP_PATH}  - JSON-RPC with streaming responses")
    logger.info(f"  GET  {base}/health  - health check")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
