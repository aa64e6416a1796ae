"""Synced brokerage transaction history endpoints."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.services import get_app_settings, get_broker
from app.config import AppSettings
from app.db.session import get_db
from app.providers.tastytrade import TastytradeClient, TastytradeError
from app.schemas import SyncResponse, TransactionHistorySchema
from app.services import ledger

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[TransactionHistorySchema], response_model_by_alias=True)
async def get_account_history(
    start_date: date | None = Query(default=None, alias="start-date"),
    end_date: date | None = Query(default=None, alias="end-date"),
    session: AsyncSession = Depends(get_db),
) -> list[TransactionHistorySchema]:
    if start_date is None or end_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start-date and end-date are required",
        )
    rows = await ledger.list_account_history(session, start=start_date, end=end_date)
    return [TransactionHistorySchema.model_validate(row) for row in rows]


@router.post("/sync", response_model=SyncResponse, response_model_by_alias=True)
async def post_sync(
    start_date: date | None = Query(default=None, alias="start-date"),
    end_date: date | None = Query(default=None, alias="end-date"),
    session: AsyncSession = Depends(get_db),
    broker: TastytradeClient = Depends(get_broker),
    settings: AppSettings = Depends(get_app_settings),
) -> SyncResponse:
    start = start_date or settings.account_history_start
    end = end_date or datetime.now(timezone.utc).date()
    try:
        synced = await ledger.sync_account_history(session, broker, start=start, end=end)
    except TastytradeError as exc:
        logger.warning("Account history sync failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return SyncResponse(synced=synced, start_date=start.isoformat(), end_date=end.isoformat())
