"""FastAPI application entry point for the fiction scraper."""

from __future__ import annotations

import logging
import os
from typing import Final

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scraper.api.routes import router
from scraper.config.settings import APIConfig

_DEVELOPMENT_ENVIRONMENTS: Final[set[str]] = {"dev", "development", "local"}

VERSION = "1.0.0"


def _is_truthy_env(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _resolve_cors_origins() -> list[str]:
    environment = os.getenv("SCRAPER_ENV", "development").strip().lower()
    origins_raw = os.getenv("SCRAPER_ALLOWED_ORIGINS", "")
    origins = [origin.strip() for origin in origins_raw.split(",") if origin.strip()]
    allow_all_in_dev = _is_truthy_env(os.getenv("SCRAPER_DEV_ALLOW_ALL_ORIGINS", ""))

    if origins:
        return origins

    if environment in _DEVELOPMENT_ENVIRONMENTS and allow_all_in_dev:
        return ["*"]

    if environment not in _DEVELOPMENT_ENVIRONMENTS:
        raise RuntimeError(
            "Production CORS configuration error: SCRAPER_ALLOWED_ORIGINS must be set "
            "to a comma-separated list of trusted origins when SCRAPER_ENV is not "
            "development/local/dev."
        )

    return []


def create_app() -> FastAPI:
    """Factory function for creating the FastAPI application."""
    api_config = APIConfig()
    logging.getLogger("scraper").setLevel(api_config.log_level)

    cors_origins = _resolve_cors_origins()
    cors_credentials = api_config.cors_allow_credentials and "*" not in cors_origins

    app = FastAPI(
        title="Fiction Scraper",
        description="Fiction page statistics extraction service",
        version=VERSION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=cors_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "service": "fiction-scraper", "version": VERSION}

    return app


app = create_app()
