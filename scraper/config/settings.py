"""Scraper configuration settings."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

DEFAULT_BASE_URL = "https://www.royalroad.com"
DEFAULT_USER_AGENT = "RRCompanion-Scraper/1.0 (https://rrcompanion.com)"


def _int_env(var_name: str, default: int) -> int:
    raw = os.getenv(var_name, "").strip()
    return int(raw) if raw else default


def _path_env(var_name: str) -> Path | None:
    raw = os.getenv(var_name, "").strip()
    return Path(raw) if raw else None


class ScrapingConfig(BaseModel):
    """Target site and HTTP transport configuration."""

    model_config = {"validate_default": True}

    base_url: str = Field(default_factory=lambda: os.getenv("SCRAPER_BASE_URL", DEFAULT_BASE_URL))
    user_agent: str = Field(
        default_factory=lambda: os.getenv("SCRAPER_USER_AGENT", DEFAULT_USER_AGENT)
    )
    request_delay_ms: int = Field(
        default_factory=lambda: _int_env("SCRAPER_REQUEST_DELAY_MS", 1000)
    )
    timeout_ms: int = Field(default_factory=lambda: _int_env("SCRAPER_REQUEST_TIMEOUT_MS", 30000))
    fetch_mode: Literal["http", "browser"] = Field(
        default_factory=lambda: os.getenv("SCRAPER_FETCH_MODE", "http").strip().lower() or "http"
    )

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(f"Invalid base_url: {value}")
        return value.rstrip("/")

    @field_validator("request_delay_ms")
    @classmethod
    def _validate_delay(cls, value: int) -> int:
        if value < 0:
            raise ValueError("SCRAPER_REQUEST_DELAY_MS must be >= 0")
        return value

    @field_validator("timeout_ms")
    @classmethod
    def _validate_timeout(cls, value: int) -> int:
        if value < 1:
            raise ValueError("SCRAPER_REQUEST_TIMEOUT_MS must be >= 1")
        return value


class RetryConfig(BaseModel):
    """Retry and backoff configuration for transport failures."""

    model_config = {"validate_default": True}

    max_retries: int = Field(default_factory=lambda: _int_env("SCRAPER_MAX_RETRIES", 3))
    backoff_base_ms: int = 1000
    backoff_max_ms: int = 5000
    jitter: bool = True

    @field_validator("max_retries")
    @classmethod
    def _validate_max_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("SCRAPER_MAX_RETRIES must be >= 0")
        return value


class BrowserConfig(BaseModel):
    """Headless browser configuration for the browser fetch mode."""

    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720
    user_agent: str | None = None
    locale: str = "en-US"


class APIConfig(BaseModel):
    """API/security and runtime controls from environment."""

    model_config = {"validate_default": True}

    api_token: str = Field(default_factory=lambda: os.getenv("SCRAPER_API_TOKEN", ""))
    cors_allow_credentials: bool = Field(
        default_factory=lambda: os.getenv("SCRAPER_CORS_ALLOW_CREDENTIALS", "").lower() == "true"
    )
    run_retention_limit: int = Field(
        default_factory=lambda: _int_env("SCRAPER_RUN_RETENTION_LIMIT", 100)
    )
    log_level: str = Field(default_factory=lambda: os.getenv("SCRAPER_LOG_LEVEL", "INFO").upper())
    ledger_dir: Path | None = Field(default_factory=lambda: _path_env("SCRAPER_LEDGER_DIR"))

    @field_validator("run_retention_limit")
    @classmethod
    def _validate_retention_limit(cls, value: int) -> int:
        if value < 1:
            raise ValueError("SCRAPER_RUN_RETENTION_LIMIT must be >= 1")
        return value


class ScrapeConfig(BaseModel):
    """Root configuration for a batch scrape run."""

    fiction_ids: list[str]
    scraping: ScrapingConfig = Field(default_factory=ScrapingConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)

    @field_validator("fiction_ids")
    @classmethod
    def _validate_fiction_ids(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("fiction_ids cannot be empty")
        for fiction_id in value:
            if not is_valid_fiction_id(fiction_id):
                raise ValueError(f"Invalid fiction id: {fiction_id!r}")
        return value


def is_valid_fiction_id(fiction_id: str) -> bool:
    """Fiction ids are positive decimal integers, kept as strings."""
    return fiction_id.isascii() and fiction_id.isdigit() and int(fiction_id) > 0
