#!/usr/bin/env python3
"""
CLI interface for qixin-mcp.

Usage:
    qixin get_enterprise_basic_info "小米科技有限责任公司"
    qixin search_enterprise "小米" --match-type ename --region 11
    qixin get_legal_documents "小米科技有限责任公司" --match-type litigant --skip 20

This provides the same functionality as the MCP tools but via command line,
making it accessible to agents that don't support MCP. Credentials come from
the same environment variables (or .env) as the server.
"""

import argparse
import asyncio
import json
import sys

from adapters.qixin import QixinClient
from config import load_settings
from logging_config import configure_logging, logger
from models import ConfigError, QueryError
from tools import TOOLS

# Optional arguments each tool accepts (besides its keyword/name)
_SKIP_TOOLS = {
    "search_enterprise", "get_executed_enterprise", "get_dishonest_enterprise",
    "get_legal_documents", "get_admin_penalty", "get_guarantee_list",
}
_MATCH_TYPE_TOOLS = {"search_enterprise", "get_legal_documents"}
_REGION_TOOLS = {"search_enterprise"}

# Tools whose primary argument is called `name` rather than `keyword`
_NAME_TOOLS = {
    "get_enterprise_size", "get_executed_enterprise", "get_legal_documents",
    "get_enterprise_genealogy3", "get_serious_illegal", "get_guarantee_list",
}


def build_call_kwargs(args: argparse.Namespace) -> dict:
    """Map parsed arguments onto the tool function's parameters."""
    primary = "name" if args.command in _NAME_TOOLS else "keyword"
    kwargs = {primary: args.query}
    if args.command in _MATCH_TYPE_TOOLS:
        kwargs["match_type"] = args.match_type
    if args.command in _REGION_TOOLS:
        kwargs["region"] = args.region
    if args.command in _SKIP_TOOLS:
        kwargs["skip"] = args.skip
    return kwargs


async def run_tool(args: argparse.Namespace, client: QixinClient) -> int:
    """Run one tool and print its JSON result. Returns the exit code."""
    try:
        outcome = await TOOLS[args.command](client, **build_call_kwargs(args))
    finally:
        await client.aclose()
    print(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
    return 1 if isinstance(outcome, QueryError) else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qixin",
        description="Qixin enterprise information CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    qixin get_enterprise_basic_info "91110108551385082Q"
    qixin search_enterprise "雷军" --match-type oper
    qixin get_dishonest_enterprise "某某建设有限公司" --skip 20
""",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for tool_name in TOOLS:
        primary = "name" if tool_name in _NAME_TOOLS else "keyword"
        sub = subparsers.add_parser(tool_name, help=f"Run {tool_name}")
        sub.add_argument("query", metavar=primary, help="Enterprise name, credit code or registration number")
        if tool_name in _MATCH_TYPE_TOOLS:
            sub.add_argument(
                "--match-type",
                help="litigant/judge for legal documents; partner, oper, ename, ... for search",
            )
        if tool_name in _REGION_TOOLS:
            sub.add_argument("--region", help="Province (2), city (4) or district (6) code")
        if tool_name in _SKIP_TOOLS:
            sub.add_argument("--skip", type=int, help="Rows to skip (default: 0)")

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except ConfigError as e:
        configure_logging()
        logger.error(str(e))
        sys.exit(2)

    configure_logging(settings.log_level)
    client = QixinClient.from_settings(settings)
    sys.exit(asyncio.run(run_tool(args, client)))


if __name__ == "__main__":
    main()
