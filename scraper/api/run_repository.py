"""In-memory run repository for API lifecycle tracking and retention."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from scraper.runner.engine import ScrapeRun


class RunSummary(BaseModel):
    """Summary kept for a finished run."""

    run_id: str
    status: str
    fiction_count: int = 0
    snapshots_count: int = 0
    failures_count: int = 0
    duration_s: float = 0
    signals_count: int = 0
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class RunEntry:
    run: ScrapeRun
    token: str
    task: asyncio.Task[Any] | None = None
    summary: RunSummary | None = None
    websockets: list[Any] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.task is not None and self.summary is None


class InMemoryRunRepository:
    """Tracks active and completed runs.

    Completed runs are evicted oldest-first once ``max_completed_runs`` is
    exceeded. Active runs are never evicted.
    """

    def __init__(self, max_completed_runs: int = 100) -> None:
        self._max_completed_runs = max_completed_runs
        self._entries: dict[str, RunEntry] = {}
        self._completed_order: list[str] = []

    def create(self, run: ScrapeRun, token: str) -> RunEntry:
        entry = RunEntry(run=run, token=token)
        self._entries[run.run_id] = entry
        return entry

    def get(self, run_id: str) -> RunEntry | None:
        return self._entries.get(run_id)

    def set_task(self, run_id: str, task: asyncio.Task[Any]) -> None:
        entry = self._entries.get(run_id)
        if entry is not None:
            entry.task = task

    def complete(self, run_id: str, result: dict[str, Any]) -> RunSummary | None:
        entry = self._entries.get(run_id)
        if entry is None:
            return None
        entry.summary = RunSummary.model_validate(result)
        entry.task = None
        self._completed_order.append(run_id)
        self._evict_completed()
        return entry.summary

    def remove(self, run_id: str) -> None:
        self._entries.pop(run_id, None)
        if run_id in self._completed_order:
            self._completed_order.remove(run_id)

    def list_entries(self) -> dict[str, RunEntry]:
        return dict(self._entries)

    def _evict_completed(self) -> None:
        while len(self._completed_order) > self._max_completed_runs:
            oldest = self._completed_order.pop(0)
            self._entries.pop(oldest, None)
