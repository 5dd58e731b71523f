"""Authentication dependencies for the scraper API.

Supports two modes:
1. Global API token (SCRAPER_API_TOKEN env var): all requests require Bearer token
2. Per-run token: returned on create_run, grants access to that run's endpoints

When SCRAPER_API_TOKEN is not set, authentication is disabled (development mode).
"""

from __future__ import annotations

import secrets

from fastapi import Depends, Header, HTTPException

from scraper.config.settings import APIConfig


def _get_api_token() -> str:
    """Read the API token at call time (supports test overrides)."""
    return APIConfig().api_token


def _get_bearer_token(authorization: str = Header(default="")) -> str:
    """Extract bearer token from Authorization header."""
    if authorization.startswith("Bearer "):
        return authorization[7:]
    return ""


async def require_api_auth(token: str = Depends(_get_bearer_token)) -> str:
    """Dependency that enforces API token authentication.

    If SCRAPER_API_TOKEN is not set, auth is disabled (returns empty string).
    """
    api_token = _get_api_token()
    if not api_token:
        return ""
    if not secrets.compare_digest(token, api_token):
        raise HTTPException(status_code=401, detail="Invalid or missing API token")
    return token


def authorize_run_access(run_token: str | None, token: str) -> None:
    """Accept either the global API token or the run-specific token."""
    api_token = _get_api_token()
    if not api_token:
        return
    if secrets.compare_digest(token, api_token):
        return
    if run_token and secrets.compare_digest(token, run_token):
        return
    raise HTTPException(status_code=403, detail="Insufficient permissions for this run")


def generate_run_token() -> str:
    """Generate a cryptographically secure per-run token."""
    return secrets.token_urlsafe(32)
