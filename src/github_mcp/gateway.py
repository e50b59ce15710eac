"""Dispatch layer.

This module:
- resolves a tool name against the registry and validates its arguments
  before any network call is made
- runs the tool handler against the transport client (no retries)
- returns a ToolResult holding either the result or a StructuredError
- writes exactly one audit event per dispatch
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Any

import httpx

from .audit import AuditLogger, new_correlation_id
from .config import AppConfig, load_config_from_env
from .errors import StructuredError, ToolError
from .github_client import GitHubClient, static_token
from .registry import ToolRegistry
from .tools import build_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Outcome of one dispatch: exactly one of `value` / `error` is set."""

    correlation_id: str
    value: dict[str, Any] | None = None
    error: StructuredError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_envelope(self) -> dict[str, Any]:
        if self.error is not None:
            out = self.error.to_result()
        else:
            out = {"ok": True}
            out.update(self.value or {})
        out["correlation_id"] = self.correlation_id
        return out


def _target_repo_from_args(arguments: Any) -> str:
    if not isinstance(arguments, dict):
        return "<unknown>"
    owner = arguments.get("owner")
    repo = arguments.get("repo")
    if isinstance(owner, str) and isinstance(repo, str) and owner and repo:
        return f"{owner}/{repo}"
    return "<unknown>"


class Gateway:
    """Validates tool calls and routes them to GitHub."""

    def __init__(self, *, registry: ToolRegistry, github: GitHubClient, audit: AuditLogger) -> None:
        self._registry = registry
        self._github = github
        self._audit = audit

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def github(self) -> GitHubClient:
        return self._github

    @property
    def audit(self) -> AuditLogger:
        return self._audit

    async def dispatch(self, name: str, arguments: Any) -> ToolResult:
        """Dispatch a tool call.

        GitHub failures, validation failures, and codec failures are returned
        in the ToolResult; only programming errors propagate.
        """
        correlation_id = new_correlation_id()
        started_at = time.monotonic()

        outcome = await self._run(name, arguments)
        error = outcome if isinstance(outcome, StructuredError) else None

        event = self._audit.record(
            correlation_id=correlation_id,
            operation=name,
            target_repo=_target_repo_from_args(arguments),
            error=error,
            started_at=started_at,
        )
        if error is not None:
            logger.info("Tool %s %s: %s", name, event.outcome, error.kind.value)
            return ToolResult(correlation_id=correlation_id, error=error)
        return ToolResult(correlation_id=correlation_id, value=outcome)

    async def _run(self, name: str, arguments: Any) -> dict[str, Any] | StructuredError:
        descriptor = self._registry.lookup(name)
        if isinstance(descriptor, StructuredError):
            return descriptor

        validated = self._registry.validate(descriptor, arguments)
        if isinstance(validated, StructuredError):
            return validated

        try:
            return await descriptor.handler(self._github, validated)
        except ToolError as exc:
            if exc.error.context is None:
                return replace(exc.error, context=f"running {name}")
            return exc.error


def build_gateway(config: AppConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> Gateway:
    """Wire a Gateway from configuration."""
    github = GitHubClient(
        token_provider=static_token(config.token),
        limits=config.limits,
        api_base_url=config.api_base_url,
        user_agent=config.user_agent,
        transport=transport,
    )
    audit = AuditLogger(
        sink_path=config.audit_log_path,
        max_bytes=config.audit_max_bytes,
        max_backups=config.audit_max_backups,
    )
    return Gateway(registry=build_registry(), github=github, audit=audit)


_GATEWAY: Gateway | None = None


def initialize_gateway_from_env() -> Gateway:
    """Initialize and cache the gateway from environment.

    Called at server startup (fail-fast), and can also be used lazily.
    """
    global _GATEWAY  # pylint: disable=global-statement
    if _GATEWAY is None:
        _GATEWAY = build_gateway(load_config_from_env())
    return _GATEWAY
