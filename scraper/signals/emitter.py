"""Signal emitter for scrape runs.

Handles emission, optional JSONL persistence, and fan-out of Signals.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from scraper.signals.types import Signal, SignalType
from scraper.telemetry.errors import ErrorCode, emit_structured_error

logger = logging.getLogger(__name__)


class SignalEmitter:
    """Emits, persists, and broadcasts signals for a single run.

    Signals are:
    - Immutable once emitted
    - Assigned monotonic sequence numbers
    - Appended to a JSONL ledger when a ledger path is given
    - Pushed to subscribers as they happen
    """

    def __init__(self, run_id: str, ledger_path: Path | None = None) -> None:
        self._run_id = run_id
        self._sequence = 0
        self._ledger_path = ledger_path
        self._subscribers: list[Callable[[Signal], Any]] = []
        self._signals: list[Signal] = []
        self._lock = asyncio.Lock()

        if self._ledger_path:
            self._ledger_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def signals(self) -> list[Signal]:
        """Return all emitted signals (read-only copy)."""
        return list(self._signals)

    def subscribe(self, callback: Callable[[Signal], Any]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[Signal], Any]) -> None:
        self._subscribers = [s for s in self._subscribers if s is not callback]

    async def emit(self, signal_type: SignalType, payload: dict[str, Any] | None = None) -> Signal:
        """Emit a signal. This is the only way signals are created."""
        async with self._lock:
            self._sequence += 1
            signal = Signal(
                sequence=self._sequence,
                signal_type=signal_type,
                timestamp=datetime.now(timezone.utc),
                run_id=self._run_id,
                payload=payload or {},
            )
            self._signals.append(signal)

        if self._ledger_path:
            self._persist(signal)

        await self._broadcast(signal)
        return signal

    def _persist(self, signal: Signal) -> None:
        with open(self._ledger_path, "a") as f:
            f.write(signal.model_dump_json() + "\n")

    async def _broadcast(self, signal: Signal) -> None:
        for subscriber in self._subscribers:
            try:
                result = subscriber(signal)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                emit_structured_error(
                    logger,
                    code=ErrorCode.SIGNAL_SUBSCRIBER_FAILURE,
                    message=str(exc),
                    suppressed=True,
                    run_id=self._run_id,
                    details={"signal_type": signal.signal_type.value},
                )

    async def emit_retry_attempt(
        self, fiction_id: str, attempt_number: int, max_attempts: int, reason: str
    ) -> Signal:
        return await self.emit(
            SignalType.RETRY_ATTEMPT,
            {
                "fiction_id": fiction_id,
                "attempt_number": attempt_number,
                "max_attempts": max_attempts,
                "reason": reason,
            },
        )

    async def emit_fetch_failed(
        self,
        fiction_id: str,
        code: str,
        status_code: int | None,
        status_text: str,
        attempts_made: int,
    ) -> Signal:
        return await self.emit(
            SignalType.FETCH_FAILED,
            {
                "fiction_id": fiction_id,
                "code": code,
                "status_code": status_code,
                "status_text": status_text,
                "attempts_made": attempts_made,
            },
        )

    async def emit_extraction_complete(
        self, fiction_id: str, found_fields: int, total_fields: int, missing: list[str]
    ) -> Signal:
        return await self.emit(
            SignalType.EXTRACTION_COMPLETE,
            {
                "fiction_id": fiction_id,
                "found_fields": found_fields,
                "total_fields": total_fields,
                "missing": missing,
            },
        )

    async def emit_run_complete(
        self, snapshots_count: int, failures_count: int, total_duration_s: float
    ) -> Signal:
        return await self.emit(
            SignalType.RUN_COMPLETE,
            {
                "snapshots_count": snapshots_count,
                "failures_count": failures_count,
                "total_duration_s": total_duration_s,
            },
        )

    async def emit_run_failed(self, failure_reason: str, fictions_processed: int) -> Signal:
        return await self.emit(
            SignalType.RUN_FAILED,
            {"failure_reason": failure_reason, "fictions_processed": fictions_processed},
        )

    @staticmethod
    def load_ledger(ledger_path: Path) -> list[Signal]:
        """Load all signals from a JSONL ledger file."""
        signals = []
        if ledger_path.exists():
            with open(ledger_path) as f:
                for line in f:
                    line = line.strip()
                    if line:
                        signals.append(Signal.model_validate_json(line))
        return signals
