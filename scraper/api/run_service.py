"""Service layer for batch scrape runs and websocket subscriptions."""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Callable

from fastapi import HTTPException, WebSocket

from scraper.api.auth import generate_run_token
from scraper.api.run_repository import InMemoryRunRepository, RunEntry
from scraper.config.settings import ScrapeConfig
from scraper.runner.engine import ScrapeRun
from scraper.signals.emitter import SignalEmitter
from scraper.signals.types import Signal
from scraper.telemetry.errors import ErrorCode, emit_structured_error
from scraper.transport.http import FictionFetcher

logger = logging.getLogger(__name__)

FetcherFactory = Callable[[ScrapeConfig], FictionFetcher]

_RUN_ID = re.compile(r"run_[0-9a-f]{12}")


class RunService:
    def __init__(
        self,
        repository: InMemoryRunRepository | None = None,
        fetcher_factory: FetcherFactory | None = None,
        ledger_dir: Path | None = None,
    ) -> None:
        self._repository = repository or InMemoryRunRepository()
        self._fetcher_factory = fetcher_factory
        self._ledger_dir = ledger_dir

    @property
    def repository(self) -> InMemoryRunRepository:
        return self._repository

    def ledger_path(self, run_id: str) -> Path | None:
        """Signal ledger location for a run, or None when ledgers are disabled."""
        if self._ledger_dir is None or not _RUN_ID.fullmatch(run_id):
            return None
        return self._ledger_dir / run_id / "signals.jsonl"

    async def create_run(self, config: ScrapeConfig) -> tuple[str, str]:
        """Start a run in the background. Returns ``(run_id, run_token)``."""
        fetcher = self._fetcher_factory(config) if self._fetcher_factory else None
        run = ScrapeRun(config, fetcher=fetcher, ledger_dir=self._ledger_dir)
        run_id = run.run_id
        token = generate_run_token()
        entry = self._repository.create(run, token)

        async def signal_broadcaster(signal: Signal) -> None:
            data = signal.model_dump_json()
            disconnected: list[WebSocket] = []
            for ws in entry.websockets:
                try:
                    await ws.send_text(data)
                except Exception as exc:
                    emit_structured_error(
                        logger,
                        code=ErrorCode.API_WEBSOCKET_SEND_FAILED,
                        message=str(exc),
                        suppressed=True,
                        run_id=run_id,
                    )
                    disconnected.append(ws)
            for ws in disconnected:
                if ws in entry.websockets:
                    entry.websockets.remove(ws)

        run.signals.subscribe(signal_broadcaster)

        async def run_task() -> None:
            try:
                result = await run.run()
                self._repository.complete(run_id, result)
            finally:
                run.signals.unsubscribe(signal_broadcaster)

        task = asyncio.create_task(run_task())
        self._repository.set_task(run_id, task)
        logger.info(
            "Scrape run started",
            extra={"run_id": run_id, "fiction_count": len(config.fiction_ids)},
        )
        return run_id, token

    def get_entry(self, run_id: str) -> RunEntry:
        entry = self._repository.get(run_id)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"Run {run_id} not found")
        return entry

    def get_status(self, run_id: str) -> dict[str, Any]:
        entry = self.get_entry(run_id)
        if entry.summary is not None:
            return entry.summary.model_dump(mode="json")
        return entry.run.summary()

    def get_signals(self, run_id: str) -> list[dict[str, Any]]:
        """Signals for a run.

        Active runs answer from memory. Finished runs, including ones already
        evicted from the repository, are read back from their ledger.
        """
        entry = self._repository.get(run_id)
        if entry is not None and entry.summary is None:
            return [s.model_dump(mode="json") for s in entry.run.signals.signals]

        ledger_path = self.ledger_path(run_id)
        if ledger_path is not None and ledger_path.exists():
            return [s.model_dump(mode="json") for s in SignalEmitter.load_ledger(ledger_path)]

        if entry is not None:
            return [s.model_dump(mode="json") for s in entry.run.signals.signals]
        raise HTTPException(status_code=404, detail=f"Signals for run {run_id} not found")

    def get_snapshots(self, run_id: str) -> dict[str, Any]:
        entry = self.get_entry(run_id)
        return {
            "run_id": run_id,
            "snapshots": [s.model_dump(mode="json") for s in entry.run.snapshots],
            "failures": [f.model_dump(mode="json") for f in entry.run.failures],
        }

    def list_runs(self) -> dict[str, Any]:
        active: list[dict[str, Any]] = []
        completed: list[dict[str, Any]] = []
        for run_id, entry in self._repository.list_entries().items():
            if entry.summary is not None:
                completed.append(entry.summary.model_dump(mode="json"))
            else:
                active.append(
                    {
                        "run_id": run_id,
                        "status": entry.run.status,
                        "processed": entry.run.processed_count,
                    }
                )
        return {"active": active, "completed": completed}

    def abort_run(self, run_id: str) -> None:
        entry = self._repository.get(run_id)
        if entry is None or not entry.is_active:
            raise HTTPException(status_code=404, detail=f"Active run {run_id} not found")
        entry.task.cancel()
        self._repository.remove(run_id)
        logger.info("Scrape run aborted", extra={"run_id": run_id})

    def add_websocket(self, run_id: str, websocket: WebSocket) -> None:
        entry = self._repository.get(run_id)
        if entry is None:
            return
        entry.websockets.append(websocket)

    def remove_websocket(self, run_id: str, websocket: WebSocket) -> None:
        entry = self._repository.get(run_id)
        if entry is None:
            return
        entry.websockets = [ws for ws in entry.websockets if ws is not websocket]
