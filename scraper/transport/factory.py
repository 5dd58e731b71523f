"""Choose a fetcher for the configured fetch mode."""

from __future__ import annotations

from scraper.config.settings import BrowserConfig, ScrapingConfig
from scraper.transport.http import FictionFetcher, HttpFetcher


def create_fetcher(
    scraping: ScrapingConfig | None = None, browser: BrowserConfig | None = None
) -> FictionFetcher:
    scraping = scraping or ScrapingConfig()
    if scraping.fetch_mode == "browser":
        from scraper.transport.browser import BrowserFetcher

        return BrowserFetcher(scraping, browser)
    return HttpFetcher(scraping)
