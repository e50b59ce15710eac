"""Configuration loading for github-mcp.

Configuration is supplied by the host environment (e.g., MCP client config), not by the agent.
The access token is treated as a secret and must never be emitted to agents, logs, or audit
reasons.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlsplit

from .errors import ConfigError

DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_TOTAL_TIMEOUT_S = 60.0
DEFAULT_READ_TIMEOUT_S = 30.0


@dataclass(frozen=True, slots=True)
class LimitsConfig:
    """Network timeouts. Requests are never retried."""

    total_timeout_s: float = DEFAULT_TOTAL_TIMEOUT_S
    connect_timeout_s: float = 5.0
    read_timeout_s: float = DEFAULT_READ_TIMEOUT_S


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Credential and transport configuration."""

    token: str = field(default="", repr=False)
    api_base_url: str = DEFAULT_API_BASE_URL
    user_agent: str = "github-mcp"

    audit_log_path: Path | None = None
    audit_max_bytes: int = 5 * 1024 * 1024
    audit_max_backups: int = 2
    limits: LimitsConfig = field(default_factory=LimitsConfig)


def _parse_api_base_url(value: str | None) -> str:
    if not value:
        return DEFAULT_API_BASE_URL
    url = value.strip().rstrip("/")
    parts = urlsplit(url)
    if parts.scheme != "https" or not parts.netloc:
        raise ConfigError("GITHUB_MCP_API_URL must be an https URL")
    return url


def _parse_timeout(value: str | None) -> float:
    if not value:
        return DEFAULT_TOTAL_TIMEOUT_S
    try:
        timeout = float(value)
    except ValueError as exc:
        raise ConfigError("GITHUB_MCP_TIMEOUT_S must be a number") from exc
    if timeout <= 0:
        raise ConfigError("GITHUB_MCP_TIMEOUT_S must be > 0")
    return timeout


def load_config_from_env() -> AppConfig:
    """Load and validate configuration from environment variables.

    Raises:
        ConfigError: If configuration is missing/invalid.
    """
    token = os.getenv("GITHUB_PERSONAL_ACCESS_TOKEN")
    if not token or not token.strip():
        raise ConfigError("Missing required configuration (GITHUB_PERSONAL_ACCESS_TOKEN)")

    api_base_url = _parse_api_base_url(os.getenv("GITHUB_MCP_API_URL"))
    total_timeout_s = _parse_timeout(os.getenv("GITHUB_MCP_TIMEOUT_S"))

    audit_path_raw = os.getenv("GITHUB_MCP_AUDIT_LOG_PATH")
    audit_path: Path | None = None
    if audit_path_raw:
        p = Path(audit_path_raw)
        if not p.is_absolute():
            raise ConfigError("GITHUB_MCP_AUDIT_LOG_PATH must be an absolute path when set")
        audit_path = p

    return AppConfig(
        token=token.strip(),
        api_base_url=api_base_url,
        audit_log_path=audit_path,
        limits=LimitsConfig(
            total_timeout_s=total_timeout_s,
            read_timeout_s=min(DEFAULT_READ_TIMEOUT_S, total_timeout_s),
        ),
    )
