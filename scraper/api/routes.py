"""REST API routes for the scraper.

Provides endpoints for:
- Scraping a single fiction page on demand
- Initiating batch scrape runs
- Monitoring run status, signals and extracted snapshots
- Real-time signal streaming over WebSocket
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from scraper.api.auth import _get_bearer_token, authorize_run_access, require_api_auth
from scraper.api.run_repository import InMemoryRunRepository
from scraper.api.run_service import RunService
from scraper.api.validators import validate_fiction_id, validate_fiction_ids
from scraper.config.settings import APIConfig, BrowserConfig, RetryConfig, ScrapeConfig, ScrapingConfig
from scraper.extraction.record import FictionSnapshot
from scraper.runner.engine import scrape_fiction
from scraper.transport.errors import TransportError
from scraper.transport.factory import create_fetcher
from scraper.transport.http import FictionFetcher

logger = logging.getLogger(__name__)

router = APIRouter()

_api_config = APIConfig()
_run_service = RunService(
    InMemoryRunRepository(_api_config.run_retention_limit),
    ledger_dir=_api_config.ledger_dir,
)


# --- Dependencies ---


def get_run_service() -> RunService:
    return _run_service


def get_retry_config() -> RetryConfig:
    return RetryConfig()


async def get_fetcher() -> AsyncIterator[FictionFetcher]:
    fetcher = create_fetcher(ScrapingConfig(), BrowserConfig())
    try:
        yield fetcher
    finally:
        await fetcher.close()


# --- Request/Response Models ---


class RunRequest(BaseModel):
    """Request to start a batch scrape run."""

    fiction_ids: list[str]


class RunResponse(BaseModel):
    """Response after starting a run."""

    run_id: str
    status: str
    message: str
    run_token: str = ""


# --- Endpoints ---


@router.get("/fictions/{fiction_id}", response_model=FictionSnapshot)
async def get_fiction(
    fiction_id: str,
    _: str = Depends(require_api_auth),
    fetcher: FictionFetcher = Depends(get_fetcher),
    retry: RetryConfig = Depends(get_retry_config),
) -> FictionSnapshot:
    """Fetch one fiction page and return its extracted record.

    A deleted or unknown fiction is reported as 404; any other transport
    failure as 502 with the upstream status.
    """
    fiction_id = validate_fiction_id(fiction_id)
    try:
        return await scrape_fiction(fetcher, fiction_id, retry)
    except TransportError as exc:
        if exc.is_not_found:
            raise HTTPException(
                status_code=404,
                detail="Fiction not found - may have been deleted or moved",
            ) from exc
        raise HTTPException(status_code=502, detail=exc.to_dict()) from exc


@router.post("/runs", response_model=RunResponse)
async def create_run(
    request: RunRequest,
    _: str = Depends(require_api_auth),
    service: RunService = Depends(get_run_service),
) -> RunResponse:
    """Start a batch scrape run.

    The run executes in the background. Use the returned run_id to monitor
    progress via GET /runs/{run_id}.
    """
    fiction_ids = validate_fiction_ids(request.fiction_ids)
    run_id, run_token = await service.create_run(ScrapeConfig(fiction_ids=fiction_ids))
    return RunResponse(
        run_id=run_id,
        status="started",
        message=f"Run initiated for {len(fiction_ids)} fiction(s)",
        run_token=run_token,
    )


@router.get("/runs")
async def list_runs(
    _: str = Depends(require_api_auth),
    service: RunService = Depends(get_run_service),
) -> dict[str, Any]:
    """List active and retained completed runs."""
    return service.list_runs()


@router.get("/runs/{run_id}")
async def get_run_status(
    run_id: str,
    token: str = Depends(_get_bearer_token),
    service: RunService = Depends(get_run_service),
) -> dict[str, Any]:
    entry = service.get_entry(run_id)
    authorize_run_access(entry.token, token)
    return service.get_status(run_id)


@router.get("/runs/{run_id}/signals")
async def get_run_signals(
    run_id: str,
    token: str = Depends(_get_bearer_token),
    service: RunService = Depends(get_run_service),
) -> list[dict[str, Any]]:
    """Signals of a run; evicted runs are served from their ledger."""
    entry = service.repository.get(run_id)
    authorize_run_access(entry.token if entry else None, token)
    return service.get_signals(run_id)


@router.get("/runs/{run_id}/snapshots")
async def get_run_snapshots(
    run_id: str,
    token: str = Depends(_get_bearer_token),
    service: RunService = Depends(get_run_service),
) -> dict[str, Any]:
    """Extracted snapshots and fetch failures for a run."""
    entry = service.get_entry(run_id)
    authorize_run_access(entry.token, token)
    return service.get_snapshots(run_id)


@router.post("/runs/{run_id}/abort")
async def abort_run(
    run_id: str,
    token: str = Depends(_get_bearer_token),
    service: RunService = Depends(get_run_service),
) -> dict[str, str]:
    entry = service.get_entry(run_id)
    authorize_run_access(entry.token, token)
    service.abort_run(run_id)
    return {"run_id": run_id, "status": "aborted"}


@router.websocket("/ws/runs/{run_id}")
async def websocket_signals(
    websocket: WebSocket,
    run_id: str,
    token: str = Query(default=""),
    service: RunService = Depends(get_run_service),
) -> None:
    """WebSocket endpoint for real-time signal streaming.

    Existing signals are replayed on connect, then new ones are pushed as the
    run emits them. Pass the token as a query parameter.
    """
    entry = service.repository.get(run_id)
    if entry is None:
        await websocket.close(code=4004, reason="Run not found")
        return
    try:
        authorize_run_access(entry.token, token)
    except HTTPException:
        await websocket.close(code=4001, reason="Unauthorized")
        return

    await websocket.accept()
    service.add_websocket(run_id, websocket)

    try:
        for signal in list(entry.run.signals.signals):
            await websocket.send_text(signal.model_dump_json())

        while True:
            try:
                data = await asyncio.wait_for(websocket.receive_text(), timeout=30)
                if data == "ping":
                    await websocket.send_text("pong")
            except asyncio.TimeoutError:
                try:
                    await websocket.send_text('{"type":"keepalive"}')
                except Exception as exc:
                    logger.debug("Keepalive failed", extra={"run_id": run_id, "error": str(exc)})
                    break
            except WebSocketDisconnect:
                logger.debug("WebSocket client disconnected", extra={"run_id": run_id})
                break
    finally:
        service.remove_websocket(run_id, websocket)
