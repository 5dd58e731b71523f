"""Scrape runner: fetch with retry, then extract.

Retry is a caller-level policy: the extractor never sees a failed response,
and a transport failure for one fiction never stops the rest of a batch.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
import uuid
from pathlib import Path
from typing import Any, Awaitable, Callable

from scraper.config.settings import RetryConfig, ScrapeConfig
from scraper.extraction.extractor import extract
from scraper.extraction.record import FetchFailure, FictionSnapshot
from scraper.signals.emitter import SignalEmitter
from scraper.signals.types import SignalType
from scraper.telemetry.errors import ErrorCode, emit_structured_error
from scraper.transport.errors import TransportError
from scraper.transport.factory import create_fetcher
from scraper.transport.http import FetchedDocument, FictionFetcher, fiction_url

logger = logging.getLogger(__name__)

RetryCallback = Callable[[TransportError, int], Awaitable[None]]


def compute_backoff(retry: RetryConfig, attempt: int) -> float:
    """Exponential backoff with optional jitter, in seconds."""
    base = retry.backoff_base_ms / 1000.0
    max_delay = retry.backoff_max_ms / 1000.0
    delay = min(base * (2 ** (attempt - 1)), max_delay)
    if retry.jitter:
        delay += random.uniform(0, base)
    return delay


async def fetch_with_retry(
    fetcher: FictionFetcher,
    fiction_id: str,
    retry: RetryConfig | None = None,
    on_retry: RetryCallback | None = None,
) -> FetchedDocument:
    """Fetch a fiction page, retrying retryable transport errors.

    Non-retryable errors (e.g. 404) propagate on the first attempt. The
    raised TransportError records how many attempts were made.
    """
    retry = retry or RetryConfig()
    attempt = 0
    while True:
        attempt += 1
        try:
            return await fetcher.fetch(fiction_id)
        except TransportError as exc:
            exc.attempts = attempt
            if not exc.retryable or attempt > retry.max_retries:
                raise
            logger.warning(
                "Fetch failed, retrying",
                extra={"fiction_id": fiction_id, "attempt": attempt, "code": exc.code},
            )
            if on_retry is not None:
                await on_retry(exc, attempt)
            await asyncio.sleep(compute_backoff(retry, attempt))


async def scrape_fiction(
    fetcher: FictionFetcher,
    fiction_id: str,
    retry: RetryConfig | None = None,
    on_retry: RetryCallback | None = None,
) -> FictionSnapshot:
    """Fetch one fiction page and extract its record.

    Raises:
        TransportError: the page could not be retrieved. Nothing is extracted.
    """
    document = await fetch_with_retry(fetcher, fiction_id, retry, on_retry)
    record = extract(document.html)
    return FictionSnapshot(fiction_id=fiction_id, source_url=document.url, record=record)


class ScrapeRun:
    """A batch scrape over a list of fiction ids.

    Fictions are processed one at a time with a politeness delay between
    requests. Every step emits a Signal.
    """

    def __init__(
        self,
        config: ScrapeConfig,
        fetcher: FictionFetcher | None = None,
        ledger_dir: Path | None = None,
    ) -> None:
        self._config = config
        self._run_id = f"run_{uuid.uuid4().hex[:12]}"
        self._status = "pending"
        self._owns_fetcher = fetcher is None
        self._fetcher = fetcher or create_fetcher(config.scraping, config.browser)
        self._signals = SignalEmitter(
            run_id=self._run_id,
            ledger_path=ledger_dir / self._run_id / "signals.jsonl" if ledger_dir else None,
        )
        self._snapshots: list[FictionSnapshot] = []
        self._failures: list[FetchFailure] = []
        self._start_time: float | None = None

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def status(self) -> str:
        return self._status

    @property
    def signals(self) -> SignalEmitter:
        return self._signals

    @property
    def snapshots(self) -> list[FictionSnapshot]:
        return list(self._snapshots)

    @property
    def failures(self) -> list[FetchFailure]:
        return list(self._failures)

    @property
    def processed_count(self) -> int:
        return len(self._snapshots) + len(self._failures)

    async def run(self) -> dict[str, Any]:
        """Scrape every configured fiction and return a run summary."""
        self._start_time = time.monotonic()
        self._status = "running"
        fiction_ids = self._config.fiction_ids
        delay_s = self._config.scraping.request_delay_ms / 1000.0

        await self._signals.emit(SignalType.RUN_STARTED, {"fiction_count": len(fiction_ids)})

        try:
            for index, fiction_id in enumerate(fiction_ids):
                if index > 0 and delay_s > 0:
                    await asyncio.sleep(delay_s)
                await self._scrape_one(fiction_id)
            await self._finish()
        except asyncio.CancelledError:
            self._status = "aborted"
            raise
        except Exception as e:
            self._status = "failed"
            emit_structured_error(
                logger,
                code=ErrorCode.RUN_FAILED,
                message=str(e),
                suppressed=False,
                run_id=self._run_id,
            )
            await self._signals.emit_run_failed(f"Unhandled exception: {e}", self.processed_count)
        finally:
            if self._owns_fetcher:
                await self._fetcher.close()

        return self.summary()

    def summary(self) -> dict[str, Any]:
        elapsed = time.monotonic() - self._start_time if self._start_time else 0
        return {
            "run_id": self._run_id,
            "status": self._status,
            "fiction_count": len(self._config.fiction_ids),
            "snapshots_count": len(self._snapshots),
            "failures_count": len(self._failures),
            "duration_s": round(elapsed, 2),
            "signals_count": len(self._signals.signals),
        }

    async def _finish(self) -> None:
        if not self._failures:
            self._status = "complete"
        elif self._snapshots:
            self._status = "partial"
        else:
            self._status = "failed"

        elapsed = round(time.monotonic() - (self._start_time or time.monotonic()), 2)
        if self._status == "failed":
            await self._signals.emit_run_failed("All fetches failed", self.processed_count)
        else:
            await self._signals.emit_run_complete(
                snapshots_count=len(self._snapshots),
                failures_count=len(self._failures),
                total_duration_s=elapsed,
            )
        logger.info("Scrape run finished", extra={"run_id": self._run_id, **self.summary()})

    async def _scrape_one(self, fiction_id: str) -> None:
        url = fiction_url(self._config.scraping.base_url, fiction_id)
        await self._signals.emit(SignalType.FETCH_STARTED, {"fiction_id": fiction_id, "url": url})

        async def on_retry(exc: TransportError, attempt: int) -> None:
            await self._signals.emit_retry_attempt(
                fiction_id,
                attempt_number=attempt,
                max_attempts=self._config.retry.max_retries + 1,
                reason=str(exc),
            )

        try:
            snapshot = await scrape_fiction(
                self._fetcher, fiction_id, self._config.retry, on_retry=on_retry
            )
        except TransportError as exc:
            await self._record_failure(fiction_id, exc)
            return

        self._snapshots.append(snapshot)
        record = snapshot.record
        missing = record.missing_fields()
        await self._signals.emit_extraction_complete(
            fiction_id,
            found_fields=len(record.fields) - len(missing),
            total_fields=len(record.fields),
            missing=missing,
        )

    async def _record_failure(self, fiction_id: str, exc: TransportError) -> None:
        self._failures.append(
            FetchFailure(
                fiction_id=fiction_id,
                url=exc.url,
                code=exc.code,
                status_code=exc.status_code,
                status_text=exc.status_text,
                attempts=exc.attempts,
            )
        )
        if exc.is_not_found:
            logger.info(
                "Fiction not found (likely deleted)",
                extra={"run_id": self._run_id, "fiction_id": fiction_id},
            )
        else:
            emit_structured_error(
                logger,
                code=ErrorCode.FETCH_RETRIES_EXHAUSTED if exc.retryable else ErrorCode.FETCH_FAILED,
                message=str(exc),
                suppressed=True,
                run_id=self._run_id,
                fiction_id=fiction_id,
                details=exc.to_dict(),
            )
        await self._signals.emit_fetch_failed(
            fiction_id,
            code=exc.code,
            status_code=exc.status_code,
            status_text=exc.status_text,
            attempts_made=exc.attempts,
        )
