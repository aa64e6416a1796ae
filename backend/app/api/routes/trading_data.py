"""Scanner results and the streaming refresh endpoint."""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Any, AsyncIterator

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.services import get_app_settings, get_broker
from app.config import AppSettings
from app.db.session import Database, get_db
from app.providers.tastytrade import TastytradeClient
from app.schemas import AnalysisResultSchema
from app.services.progress import ProgressTracker
from app.services.scanner import default_universe, list_results, scan_symbols

logger = logging.getLogger(__name__)

router = APIRouter()

# Scans keep running when the client disconnects; progress stays readable via /progress-state.
_running_scans: set[asyncio.Task[None]] = set()


def _sse(event: dict[str, Any]) -> str:
    return f"data: {json.dumps(event)}\n\n"


async def _run_scan(
    database: Database,
    settings: AppSettings,
    broker: TastytradeClient,
    symbols: list[str],
    queue: asyncio.Queue[dict[str, Any] | None],
) -> None:
    async with database.session() as session:
        tracker = ProgressTracker(session, uuid.uuid4().hex)

        async def on_progress(event: dict[str, Any]) -> None:
            await tracker.record(event)
            await queue.put(event)

        try:
            universe = symbols or await default_universe(settings)
            await scan_symbols(
                session,
                broker,
                universe,
                thresholds=settings.screening_thresholds(),
                delay_ms=settings.scan_delay_ms,
                on_progress=on_progress,
            )
        except Exception as exc:
            logger.exception("Trading data refresh failed")
            await session.rollback()
            event = {"type": "error", "message": str(exc)}
            await tracker.record(event)
            await queue.put(event)
        finally:
            await queue.put(None)


async def _stream(queue: asyncio.Queue[dict[str, Any] | None]) -> AsyncIterator[str]:
    while True:
        event = await queue.get()
        if event is None:
            break
        yield _sse(event)


@router.get("", response_model=list[AnalysisResultSchema], response_model_by_alias=True)
async def get_trading_data(session: AsyncSession = Depends(get_db)) -> list[AnalysisResultSchema]:
    rows = await list_results(session)
    return [AnalysisResultSchema.model_validate(row) for row in rows]


@router.get("/refresh")
async def refresh_trading_data(
    request: Request,
    symbols: str | None = Query(default=None, description="Comma separated symbols; defaults to S&P 500 + sector ETFs"),
    broker: TastytradeClient = Depends(get_broker),
    settings: AppSettings = Depends(get_app_settings),
) -> StreamingResponse:
    requested = [s.strip().upper() for s in (symbols or "").split(",") if s.strip()]
    queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()
    task = asyncio.create_task(_run_scan(request.app.state.database, settings, broker, requested, queue))
    _running_scans.add(task)
    task.add_done_callback(_running_scans.discard)
    return StreamingResponse(
        _stream(queue),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
