"""GitHub REST transport client.

Provides:
- a single outbound request per call, never retried
- finite timeouts and no-redirect behavior
- raw responses: HTTP status codes are never raised; transport failures are
  reported as a response with status 0 so they flow through the normalizer
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable
from urllib.parse import urlsplit

import httpx

from .config import DEFAULT_API_BASE_URL, LimitsConfig
from .errors import ConfigError

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str]]

TRANSPORT_FAILURE_STATUS = 0


@dataclass(frozen=True, slots=True)
class TransportResponse:
    """Raw outcome of one request."""

    status_code: int
    reason_phrase: str
    body: bytes
    method: str
    path: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code <= 299


def static_token(token: str) -> TokenProvider:
    """Wrap a host-supplied token as an async token provider."""

    async def _provider() -> str:
        return token

    return _provider


class GitHubClient:
    """Minimal GitHub REST client."""

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        limits: LimitsConfig,
        api_base_url: str = DEFAULT_API_BASE_URL,
        user_agent: str = "github-mcp",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a GitHub REST client.

        Args:
            token_provider: Async callable that returns the access token.
            limits: Timeouts.
            api_base_url: Must be an https URL.
            user_agent: Sent on every request; GitHub rejects requests without one.
            transport: Optional httpx transport for tests.
        """
        self._token_provider = token_provider
        self._limits = limits
        self._api_base_url = api_base_url.rstrip("/")
        self._user_agent = user_agent
        self._transport = transport

        if urlsplit(self._api_base_url).scheme != "https":
            raise ConfigError("Only https GitHub API URLs are allowed")

    @property
    def api_base_url(self) -> str:
        return self._api_base_url

    @property
    def limits(self) -> LimitsConfig:
        return self._limits

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": self._user_agent,
        }

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            timeout=self._limits.total_timeout_s,
            connect=self._limits.connect_timeout_s,
            read=self._limits.read_timeout_s,
        )

    async def request(
        self,
        *,
        method: str,
        path: str,
        json_body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> TransportResponse:
        """Issue one request and return the raw response."""
        url = f"{self._api_base_url}{path}"
        token = await self._token_provider()

        try:
            async with httpx.AsyncClient(
                follow_redirects=False,
                timeout=self._timeout(),
                transport=self._transport,
            ) as client:
                resp = await client.request(
                    method,
                    url,
                    headers=self._headers(token),
                    json=json_body,
                    params=params,
                )
        except httpx.HTTPError as exc:
            logger.warning("GitHub request %s %s failed: %s", method, path, type(exc).__name__)
            detail = str(exc) or "no details"
            return TransportResponse(
                status_code=TRANSPORT_FAILURE_STATUS,
                reason_phrase=f"{type(exc).__name__}: {detail}",
                body=b"",
                method=method,
                path=path,
            )

        logger.debug("GitHub request %s %s -> %s", method, path, resp.status_code)
        return TransportResponse(
            status_code=resp.status_code,
            reason_phrase=resp.reason_phrase,
            body=resp.content,
            method=method,
            path=path,
        )
