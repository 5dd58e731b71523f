"""Extraction data models: per-field outcomes and the records built from them."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class FieldStatus(str, Enum):
    """Outcome of applying one extraction rule to a document."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    UNPARSEABLE = "unparseable"


class FieldValue(BaseModel):
    """A single extracted field.

    Only FOUND fields carry a value. UNPARSEABLE keeps the raw capture for
    debugging but is otherwise treated exactly like NOT_FOUND.
    """

    status: FieldStatus
    value: Any = None
    raw: str | None = None
    source_pattern: str | None = None

    model_config = {"frozen": True}

    @property
    def present(self) -> bool:
        return self.status == FieldStatus.FOUND


class ExtractedRecord(BaseModel):
    """The structured result of extracting one fiction page.

    Every declared rule appears in ``fields``. The record holds nothing
    time-dependent, so extracting the same document twice yields equal records.
    """

    fields: dict[str, FieldValue]
    source_hash: str
    completeness_score: float = Field(ge=0.0, le=1.0, default=1.0)
    is_partial: bool = False

    model_config = {"frozen": True}

    @staticmethod
    def compute_hash(html: str) -> str:
        return hashlib.sha256(html.encode("utf-8", errors="replace")).hexdigest()[:16]

    def get(self, name: str, default: Any = None) -> Any:
        """Return the value for a found field, else ``default``."""
        field = self.fields.get(name)
        if field is None or not field.present:
            return default
        return field.value

    def missing_fields(self) -> list[str]:
        return [name for name, field in self.fields.items() if not field.present]


class FictionSnapshot(BaseModel):
    """An extracted record together with where and when it was captured."""

    fiction_id: str
    source_url: str
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    record: ExtractedRecord


class FetchFailure(BaseModel):
    """A fiction whose document could not be retrieved."""

    fiction_id: str
    url: str
    code: str
    status_code: int | None = None
    status_text: str = ""
    attempts: int = 1
    failed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
