"""Structured error telemetry helpers."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Canonical error codes for operational telemetry."""

    FETCH_FAILED = "FETCH_FAILED"
    FETCH_RETRIES_EXHAUSTED = "FETCH_RETRIES_EXHAUSTED"
    RUN_FAILED = "RUN_FAILED"
    SIGNAL_SUBSCRIBER_FAILURE = "SIGNAL_SUBSCRIBER_FAILURE"
    BROWSER_CLEANUP_FAILED = "BROWSER_CLEANUP_FAILED"
    API_WEBSOCKET_SEND_FAILED = "API_WEBSOCKET_SEND_FAILED"


def emit_structured_error(
    logger: logging.Logger,
    *,
    code: ErrorCode,
    message: str,
    suppressed: bool,
    run_id: str | None = None,
    fiction_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    """Emit a structured telemetry event via logging."""
    logger.error(
        "scraper_error",
        extra={
            "error_code": code,
            "error_message": message,
            "suppressed": suppressed,
            "run_id": run_id,
            "fiction_id": fiction_id,
            "details": details or {},
        },
    )
