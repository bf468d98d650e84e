"""MCP server exposing the discover / match / suggest tools.

Launched via: python -m server.mcp_server [--transport stdio|http]
Transports: stdio (JSON-RPC over stdin/stdout, the default) or streamable
HTTP at http://MCP_HOST:MCP_PORT/mcp (127.0.0.1:3001 unless configured)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Literal, Optional

from fastmcp import FastMCP

from pattern_discovery.config import get_log_level, get_mcp_config
from pattern_discovery.db.database import get_db
from pattern_discovery.tools.discovery_tools import DiscoveryTools, ToolResult

log = logging.getLogger("pattern-discovery-mcp")

mcp = FastMCP("pattern-discovery")

_tools: Optional[DiscoveryTools] = None


def _get_tools() -> DiscoveryTools:
    global _tools
    if _tools is None:
        _tools = DiscoveryTools(get_db())
    return _tools


def _render(result: ToolResult) -> str:
    text = "\n".join(part["text"] for part in result["content"])
    if result.get("isError"):
        return f"ERROR: {text}"
    return text


# ---------------------------------------------------------------------------
# Read tools
# ---------------------------------------------------------------------------


@mcp.tool()
def discover(domain: str = "") -> str:
    """List the known domains, or the categories within one domain. Use this to
    explore what patterns are available before matching.

    Args:
        domain: Domain slug to list categories for (e.g. 'software-engineering');
            empty to list all domains
    """
    log.info("discover domain=%s", domain or "*")
    return _render(_get_tools().discover(domain or None))


@mcp.tool()
def match(domain: str, categories: list[str]) -> str:
    """Return patterns from the given categories of a domain. Each pattern
    includes an id, label, description, intention, and prompt template.

    Args:
        domain: The domain slug to search within
        categories: Category slugs to match patterns from
    """
    log.info("match domain=%s categories=%s", domain, json.dumps(categories))
    return _render(_get_tools().match(domain, categories))


# ---------------------------------------------------------------------------
# Write tools
# ---------------------------------------------------------------------------


@mcp.tool()
def suggest(
    type: Literal["new", "modify"],
    label: str,
    description: str,
    intention: str,
    template: str,
    source: str,
    domain_slug: Optional[str] = None,
    category_slug: Optional[str] = None,
    target_pattern_id: Optional[int] = None,
) -> str:
    """Submit a suggestion to add a new pattern or edit an existing one.
    Suggestions are queued for admin review.

    Args:
        type: 'new' to suggest a new pattern, 'modify' to change an existing one
        label: Short identifier for the pattern (e.g. 'error-handling')
        description: Human-readable description of the pattern
        intention: What the user intends when this pattern applies
        template: The prompt template content
        source: Who or what is submitting (e.g. 'desktop-client:user123')
        domain_slug: Domain slug for 'new' suggestions
        category_slug: Category slug for 'new' suggestions
        target_pattern_id: Pattern id to modify (required for 'modify')
    """
    log.info("suggest type=%s source=%s", type, source)
    return _render(_get_tools().suggest(
        type=type,
        label=label,
        description=description,
        intention=intention,
        template=template,
        source=source,
        domain_slug=domain_slug,
        category_slug=category_slug,
        target_pattern_id=target_pattern_id,
    ))


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    cfg = get_mcp_config()
    parser = argparse.ArgumentParser(description="Pattern Discovery MCP server")
    parser.add_argument("--transport", choices=("stdio", "http"), default=cfg.transport)
    parser.add_argument("--host", default=cfg.host, help="Bind address for --transport http")
    parser.add_argument("--port", type=int, default=cfg.port, help="Port for --transport http")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(level=get_log_level(), stream=sys.stderr)
    if args.transport == "http":
        log.info("serving MCP on http://%s:%s/mcp", args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port, path="/mcp")
    else:
        mcp.run()


if __name__ == "__main__":
    main()
