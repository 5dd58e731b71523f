"""Browser transport: Playwright-based fetcher for pages that need a real browser.

The fetcher has no decision-making authority. It navigates to one fiction
URL at a time, checks the response status, and returns the rendered HTML.
"""

from __future__ import annotations

import logging
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from scraper.config.settings import BrowserConfig, ScrapingConfig
from scraper.telemetry.errors import ErrorCode, emit_structured_error
from scraper.transport.errors import TransportError
from scraper.transport.http import FetchedDocument, fiction_url

logger = logging.getLogger(__name__)


class BrowserFetcher:
    """Headless Chromium fetcher.

    Contract:
    - Lazily launches the browser on the first fetch; a failed launch raises
      a non-retryable TransportError (BROWSER_LAUNCH)
    - A missing or non-2xx navigation response raises TransportError
    - Navigation timeouts and browser errors raise retryable TransportErrors
    """

    def __init__(
        self,
        scraping: ScrapingConfig | None = None,
        browser: BrowserConfig | None = None,
    ) -> None:
        self._scraping = scraping or ScrapingConfig()
        self._config = browser or BrowserConfig()
        self._playwright: Any = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    async def start(self) -> None:
        """Launch browser and create an isolated context."""
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._config.headless,
        )
        self._context = await self._browser.new_context(
            viewport={
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            },
            user_agent=self._config.user_agent or self._scraping.user_agent,
            locale=self._config.locale,
        )
        self._page = await self._context.new_page()

    async def fetch(self, fiction_id: str) -> FetchedDocument:
        url = fiction_url(self._scraping.base_url, fiction_id)
        if self._page is None:
            await self._start_for(url)
        if self._page is None:
            raise TransportError("Browser page unavailable", code="BROWSER_LAUNCH", url=url)

        try:
            response = await self._page.goto(
                url, wait_until="domcontentloaded", timeout=self._scraping.timeout_ms
            )
            if response is None:
                raise TransportError(
                    "No navigation response", code="NETWORK", url=url, retryable=True
                )
            if not response.ok:
                raise TransportError.from_status(url, response.status, response.status_text)
            html = await self._page.content()
        except PlaywrightTimeoutError as exc:
            raise TransportError.from_exception(url, exc, timeout=True) from exc
        except PlaywrightError as exc:
            raise TransportError.from_exception(url, exc) from exc

        return FetchedDocument(
            fiction_id=fiction_id, url=url, status_code=response.status, html=html
        )

    async def _start_for(self, url: str) -> None:
        # Launch failures are not retryable.
        try:
            await self.start()
        except PlaywrightError as exc:
            await self.close()
            raise TransportError(
                f"Browser launch failed: {exc}", code="BROWSER_LAUNCH", url=url
            ) from exc

    async def close(self) -> None:
        """Clean up browser resources."""
        try:
            if self._context:
                await self._context.close()
            if self._browser:
                await self._browser.close()
            if self._playwright:
                await self._playwright.stop()
        except PlaywrightError as exc:
            emit_structured_error(
                logger,
                code=ErrorCode.BROWSER_CLEANUP_FAILED,
                message=str(exc),
                suppressed=True,
            )
        finally:
            self._context = None
            self._browser = None
            self._playwright = None
            self._page = None
