"""HTTP GET primitive for the course index and syllabus documents.

All network I/O for documents goes through a single Fetcher instance shared
across requests. The Fetcher receives an httpx.AsyncClient via constructor
injection; the lifespan owns the client lifecycle.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from coursecontext.errors import UpstreamFetchError

if TYPE_CHECKING:
    from coursecontext.config import FetcherSettings

log = structlog.get_logger()


def build_http_client(settings: FetcherSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    timeout = settings.timeout_seconds if settings is not None else 30.0
    user_agent = settings.user_agent if settings is not None else "coursecontext/1.0"
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": user_agent},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


class Fetcher:
    """Plain HTTP GET returning response text or decoded JSON."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def fetch_text(self, url: str) -> str:
        """Fetch a URL and return its text body.

        Raises UpstreamFetchError on network errors and non-2xx responses.
        """
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(
                f"Network error fetching {url}: {exc}",
                recoverable=True,
            ) from exc

        if not response.is_success:
            raise UpstreamFetchError(
                f"HTTP {response.status_code} fetching {url}",
                recoverable=response.status_code >= 500,
            )

        log.info(
            "fetch_complete",
            url=url,
            status_code=response.status_code,
            content_length=len(response.text),
        )
        return response.text

    async def fetch_json(self, url: str) -> Any:
        """Fetch a URL and decode its body as JSON."""
        text = await self.fetch_text(url)
        try:
            return json.loads(text)
        except ValueError as exc:
            raise UpstreamFetchError(f"Invalid JSON from {url}: {exc}") from exc
