"""Validation helpers for API request payloads."""

from __future__ import annotations

from fastapi import HTTPException

from scraper.config.settings import is_valid_fiction_id

MAX_FICTIONS_PER_RUN = 500


def validate_fiction_id(fiction_id: str) -> str:
    """Fiction ids must be positive decimal integers."""
    fiction_id = fiction_id.strip()
    if not is_valid_fiction_id(fiction_id):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid fiction id '{fiction_id}'. Expected a positive integer.",
        )
    return fiction_id


def validate_fiction_ids(fiction_ids: list[str]) -> list[str]:
    """Validate a batch of ids; duplicates are dropped, order is kept."""
    if not fiction_ids:
        raise HTTPException(status_code=400, detail="fiction_ids cannot be empty.")
    if len(fiction_ids) > MAX_FICTIONS_PER_RUN:
        raise HTTPException(
            status_code=400,
            detail=f"A run accepts at most {MAX_FICTIONS_PER_RUN} fiction ids.",
        )
    validated = [validate_fiction_id(fiction_id) for fiction_id in fiction_ids]
    return list(dict.fromkeys(validated))
