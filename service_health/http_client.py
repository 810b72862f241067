
# Microsoft Graph service-announcement client.

# Thin wrapper around one shared aiohttp.ClientSession:
#   - client-credentials token exchange
#   - healthOverviews (with issues expanded) and per-issue detail lookups
#   - bounded per-request timeout and exponential backoff on transient errors
#
# Transport failures never leak out as aiohttp exceptions: each call maps them
# onto the collector's own error taxonomy so the pipeline can decide what is
# fatal (token, overview) and what is recoverable (a single issue).

import asyncio
import logging
from typing import Any

import aiohttp

from service_health.config import (
    GRAPH_BASE_URL,
    GRAPH_SCOPE,
    MAX_RETRIES,
    MAX_RETRY_DELAY_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
    RETRY_BASE_DELAY_SECONDS,
    TOKEN_URL_TEMPLATE,
    Settings,
)
from service_health.errors import (
    AuthenticationError,
    IncidentFetchError,
    OverviewFetchError,
)

log = logging.getLogger(__name__)

_RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class GraphClient:
    """
    Wraps an aiohttp.ClientSession for the serviceAnnouncement API.

    fetch_token() must succeed before any other call; it stores the bearer
    header used by every subsequent GET.
    """

    def __init__(self, session: aiohttp.ClientSession, base_url: str = GRAPH_BASE_URL) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._headers: dict[str, str] = {}

    async def fetch_token(self, settings: Settings) -> str:
        """
        Exchange client credentials for an access token.

        Raises:
            AuthenticationError  on any failure or a response without access_token
        """
        url = TOKEN_URL_TEMPLATE.format(tenant_id=settings.tenant_id)
        form = {
            "client_id": settings.client_id,
            "scope": GRAPH_SCOPE,
            "client_secret": settings.client_secret,
            "grant_type": "client_credentials",
        }

        try:
            data = await self._request("POST", url, data=form)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise AuthenticationError(f"Token exchange failed: {_describe(exc)}") from exc

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise AuthenticationError("Token response did not contain an access_token")

        self._headers = {"Authorization": f"Bearer {token}"}
        log.debug("Obtained access token for tenant %s", settings.tenant_id)
        return token

    async def fetch_overviews(self) -> Any:
        """
        Raises:
            OverviewFetchError  on any transport or HTTP failure
        """
        url = f"{self._base_url}/healthOverviews?$expand=issues"
        try:
            return await self._request("GET", url, headers=self._headers)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise OverviewFetchError(f"Error fetching health overviews: {_describe(exc)}") from exc

    async def fetch_issue(self, issue_id: str) -> Any:
        """
        Raises:
            IncidentFetchError  on any transport or HTTP failure
        """
        url = f"{self._base_url}/issues/{issue_id}"
        try:
            return await self._request("GET", url, headers=self._headers)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise IncidentFetchError(issue_id, _describe(exc)) from exc

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """
        Perform one request with retries, returning the decoded JSON body.

        Backoff formula: delay = RETRY_BASE_DELAY_SECONDS * 2^attempt,
        capped at MAX_RETRY_DELAY_SECONDS. Only connection errors, timeouts
        and 429/5xx responses are retried; the last error is re-raised.
        """
        attempt = 0
        while True:
            try:
                async with self._session.request(
                    method,
                    url,
                    timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS),
                    **kwargs,
                ) as resp:
                    resp.raise_for_status()
                    return await resp.json(content_type=None)

            except aiohttp.ClientResponseError as exc:
                if exc.status not in _RETRYABLE_STATUSES or attempt >= MAX_RETRIES:
                    log.warning("HTTP error for %s: %s %s", url, exc.status, exc.message)
                    raise

            except (aiohttp.ClientError, asyncio.TimeoutError):
                if attempt >= MAX_RETRIES:
                    log.warning("Giving up on %s after %d retries", url, attempt)
                    raise

            attempt += 1
            delay = min(RETRY_BASE_DELAY_SECONDS * (2 ** attempt), MAX_RETRY_DELAY_SECONDS)
            log.warning("Transient error for %s. Retry %d/%d in %ds.", url, attempt, MAX_RETRIES, delay)
            await asyncio.sleep(delay)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, aiohttp.ClientResponseError):
        return f"{exc.status} {exc.message}"
    if isinstance(exc, asyncio.TimeoutError):
        return "request timed out"
    return str(exc) or type(exc).__name__
