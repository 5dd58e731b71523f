"""HTTP transport: fetches fiction pages with httpx."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from scraper.config.settings import ScrapingConfig
from scraper.transport.errors import TransportError

logger = logging.getLogger(__name__)

_BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass(frozen=True)
class FetchedDocument:
    """A successfully retrieved fiction page."""

    fiction_id: str
    url: str
    status_code: int
    html: str


class FictionFetcher(Protocol):
    """Anything that can turn a fiction id into a document or a TransportError."""

    async def fetch(self, fiction_id: str) -> FetchedDocument: ...

    async def close(self) -> None: ...


def fiction_url(base_url: str, fiction_id: str) -> str:
    return f"{base_url.rstrip('/')}/fiction/{fiction_id}"


class HttpFetcher:
    """Plain HTTP fetcher.

    Contract:
    - Status 200-299 returns a FetchedDocument
    - Any other status raises TransportError carrying the code and reason phrase
    - Timeouts and connection failures raise retryable TransportErrors
    """

    def __init__(
        self,
        config: ScrapingConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or ScrapingConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self._config.timeout_ms / 1000.0,
            headers={"User-Agent": self._config.user_agent, **_BROWSER_HEADERS},
            follow_redirects=True,
        )

    async def fetch(self, fiction_id: str) -> FetchedDocument:
        url = fiction_url(self._config.base_url, fiction_id)
        logger.debug("Fetching fiction page", extra={"fiction_id": fiction_id, "url": url})

        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            raise TransportError.from_exception(url, exc, timeout=True) from exc
        except httpx.HTTPError as exc:
            raise TransportError.from_exception(url, exc) from exc

        if not response.is_success:
            raise TransportError.from_status(url, response.status_code, response.reason_phrase)

        return FetchedDocument(
            fiction_id=fiction_id,
            url=url,
            status_code=response.status_code,
            html=response.text,
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
