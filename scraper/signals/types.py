"""Signal type definitions for scrape run observability."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class SignalType(str, Enum):
    """All signal types emitted during a scrape run."""

    RUN_STARTED = "RUN_STARTED"
    FETCH_STARTED = "FETCH_STARTED"
    RETRY_ATTEMPT = "RETRY_ATTEMPT"
    FETCH_FAILED = "FETCH_FAILED"
    EXTRACTION_COMPLETE = "EXTRACTION_COMPLETE"
    RUN_COMPLETE = "RUN_COMPLETE"
    RUN_FAILED = "RUN_FAILED"


class Signal(BaseModel):
    """An immutable signal emitted during a scrape run.

    Signals are append-only and cannot be modified after emission.
    """

    sequence: int = Field(description="Monotonic sequence number within the run")
    signal_type: SignalType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    run_id: str
    payload: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}
