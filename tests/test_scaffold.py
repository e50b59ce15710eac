"""Smoke tests for the MCP server surface."""

from __future__ import annotations

import json

import github_mcp.server as server_mod
import httpx
import pytest
from github_mcp.config import AppConfig
from github_mcp.errors import ConfigError
from github_mcp.gateway import build_gateway
from github_mcp.server import call_tool, list_resources, list_tools, read_resource


@pytest.mark.asyncio
async def test_server_lists_all_tools() -> None:
    tools = await list_tools()

    assert len(tools) == 17
    names = {t.name for t in tools}
    assert {"get_file_contents", "push_files", "create_pull_request"} <= names


@pytest.mark.asyncio
async def test_server_lists_resources_ok() -> None:
    resources = await list_resources()

    assert {r.name for r in resources} == {"Server Status", "Capabilities"}


@pytest.mark.asyncio
async def test_tools_do_not_emit_secrets_in_metadata() -> None:
    tools = await list_tools()
    as_json = json.dumps([t.model_dump() for t in tools], sort_keys=True)

    assert "ghp_" not in as_json
    assert "github_pat_" not in as_json
    assert "Bearer " not in as_json


@pytest.mark.asyncio
async def test_capabilities_resource_lists_error_kinds() -> None:
    caps = json.loads(await read_resource("github-mcp://capabilities"))

    assert caps["retries"] is False
    assert "RateLimited" in caps["error_kinds"]
    assert "UnknownTool" in caps["error_kinds"]
    assert len(caps["tools"]) == 17


@pytest.mark.asyncio
async def test_unknown_resource_returns_not_found() -> None:
    out = json.loads(await read_resource("github-mcp://nope"))

    assert out == {"ok": False, "code": "NotFound", "message": "Unknown resource"}


@pytest.mark.asyncio
async def test_server_status_reports_unconfigured(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail() -> None:
        raise ConfigError("Missing required configuration (GITHUB_PERSONAL_ACCESS_TOKEN)")

    monkeypatch.setattr(server_mod, "initialize_gateway_from_env", _fail)

    status = json.loads(await read_resource("github-mcp://server-status"))

    assert status["configured"] is False
    assert status["tools_available"] == 17


@pytest.mark.asyncio
async def test_server_status_never_includes_token(monkeypatch: pytest.MonkeyPatch) -> None:
    gateway = build_gateway(AppConfig(token="ghp_secret"))
    monkeypatch.setattr(server_mod, "initialize_gateway_from_env", lambda: gateway)

    raw = await read_resource("github-mcp://server-status")
    status = json.loads(raw)

    assert status["configured"] is True
    assert status["api_host"] == "api.github.com"
    assert status["audit"] == {"file_sink_enabled": False}
    assert "ghp_secret" not in raw


@pytest.mark.asyncio
async def test_call_tool_returns_config_error_envelope(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail() -> None:
        raise ConfigError("Missing required configuration (GITHUB_PERSONAL_ACCESS_TOKEN)")

    monkeypatch.setattr(server_mod, "initialize_gateway_from_env", _fail)

    out = await call_tool("get_issue", {"owner": "octo", "repo": "repo", "issue_number": 1})
    payload = json.loads(out[0].text)

    assert payload["ok"] is False
    assert payload["code"] == "Config"
    assert payload["hint"] == server_mod.CONFIG_HINT
    assert "GITHUB_PERSONAL_ACCESS_TOKEN" in payload["hint"]


@pytest.mark.asyncio
async def test_call_tool_serializes_gateway_result(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Not Found"})

    gateway = build_gateway(AppConfig(token="t"), transport=httpx.MockTransport(handler))
    monkeypatch.setattr(server_mod, "initialize_gateway_from_env", lambda: gateway)

    out = await call_tool("get_issue", {"owner": "octo", "repo": "repo", "issue_number": 1})
    payload = json.loads(out[0].text)

    assert out[0].type == "text"
    assert payload["code"] == "NotFound"
    assert payload["status"] == 404
    assert payload["correlation_id"]


@pytest.mark.asyncio
async def test_call_tool_hides_unexpected_exceptions(monkeypatch: pytest.MonkeyPatch) -> None:
    def _boom() -> None:
        raise RuntimeError("kaboom")

    monkeypatch.setattr(server_mod, "initialize_gateway_from_env", _boom)

    out = await call_tool("get_issue", {})
    payload = json.loads(out[0].text)

    assert payload == {"ok": False, "code": "Internal", "message": "Tool execution failed"}
