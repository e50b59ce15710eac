"""MCP server wiring for github-mcp.

Lists the registered tools, routes tool calls through the gateway, and
serializes results as JSON text.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any
from urllib.parse import urlsplit

try:
    from mcp.server import Server
    from mcp.types import Resource, TextContent, Tool
except ImportError as exc:  # pragma: no cover
    raise ImportError("MCP library not installed. Install with: pip install mcp") from exc

from . import __version__
from .errors import ConfigError, ErrorKind, internal_error, to_error_result
from .gateway import initialize_gateway_from_env
from .tools import build_registry

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)

server = Server("github-mcp")

CONFIG_HINT = "Set GITHUB_PERSONAL_ACCESS_TOKEN (and optional GITHUB_MCP_* settings) in the MCP client's server environment"

TOOL_REGISTRY = build_registry()

_RESOURCES = (
    ("github-mcp://server-status", "Server Status", "Non-secret server configuration"),
    ("github-mcp://capabilities", "Capabilities", "Available tools and error kinds"),
)


def _tools() -> list[Tool]:
    return [
        Tool(name=d.name, description=d.description, inputSchema=TOOL_REGISTRY.input_schema(d.name))
        for d in TOOL_REGISTRY.values()
    ]


def _resources() -> list[Resource]:
    return [Resource(uri=uri, name=name, description=description) for uri, name, description in _RESOURCES]


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List all available tools."""
    tools = _tools()
    logger.info("Listed %s tools", len(tools))
    return tools


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Execute a tool and return MCP-compliant TextContent."""
    logger.info("Tool called: %s", name)

    try:
        gateway = initialize_gateway_from_env()
        result = await gateway.dispatch(name, arguments)
        payload = result.to_envelope()
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc.message)
        payload = to_error_result(code="Config", message=exc.message, hint=CONFIG_HINT)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.exception("Tool %s failed: %s", name, exc)
        payload = internal_error("Tool execution failed")

    return [TextContent(type="text", text=json.dumps(payload, indent=2, default=str))]


@server.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return _resources()


@server.read_resource()
async def read_resource(uri: Any) -> str:
    """Read resource content."""
    uri_s = uri if isinstance(uri, str) else str(uri)

    if uri_s == "github-mcp://capabilities":
        caps = {
            "server": "github-mcp",
            "version": __version__,
            "tools": TOOL_REGISTRY.names(),
            "error_kinds": [k.value for k in ErrorKind],
            "retries": False,
        }
        return json.dumps(caps, indent=2)

    if uri_s == "github-mcp://server-status":
        status: dict[str, Any] = {
            "server": "github-mcp",
            "version": __version__,
            "tools_available": len(TOOL_REGISTRY),
            "configured": False,
        }
        try:
            gateway = initialize_gateway_from_env()
            status["configured"] = True
            status["api_host"] = urlsplit(gateway.github.api_base_url).netloc
            status["limits"] = {
                "total_timeout_s": gateway.github.limits.total_timeout_s,
                "connect_timeout_s": gateway.github.limits.connect_timeout_s,
                "read_timeout_s": gateway.github.limits.read_timeout_s,
            }
            status["audit"] = {"file_sink_enabled": gateway.audit.has_file_sink}
        except ConfigError:
            status["configured"] = False

        return json.dumps(status, indent=2)

    return json.dumps(to_error_result(code="NotFound", message="Unknown resource"), indent=2)


async def run_server() -> None:
    """Run the server over stdio."""
    # Fail fast on invalid/missing host configuration.
    try:
        _ = initialize_gateway_from_env()
    except ConfigError as exc:
        logger.error("Startup configuration error: %s", exc.message)
        raise

    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


async def test_server() -> None:
    """Lightweight self-test to ensure tool/resource listing works."""
    tools = _tools()
    resources = _resources()
    logger.info("Self-test ok: %s tools, %s resources", len(tools), len(resources))
