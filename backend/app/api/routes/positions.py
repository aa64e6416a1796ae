"""Covered positions from the broker and aggregated position episodes."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.services import get_broker
from app.core.telemetry import get_tracer
from app.db.session import get_db
from app.providers.tastytrade import TastytradeClient, TastytradeError
from app.schemas import PositionEpisodeSchema
from app.services import ledger
from premium_desk import InvalidInputError, aggregate_positions

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def get_positions(broker: TastytradeClient = Depends(get_broker)) -> list[dict[str, Any]]:
    try:
        return await broker.get_positions()
    except TastytradeError as exc:
        logger.warning("Failed to fetch positions: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


@router.get("/aggregated", response_model=list[PositionEpisodeSchema], response_model_by_alias=True)
async def get_aggregated_positions(session: AsyncSession = Depends(get_db)) -> list[PositionEpisodeSchema]:
    """Aggregate the stored ledger into position episodes, newest first."""

    with get_tracer().start_as_current_span("positions.aggregate") as span:
        transactions = await ledger.load_ledger(session)
        span.set_attribute("ledger.transactions", len(transactions))
        try:
            episodes = aggregate_positions(transactions)
        except InvalidInputError as exc:
            logger.exception("Position aggregation failed")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
        span.set_attribute("positions.episodes", len(episodes))

    await ledger.record_closed_positions(session, episodes)
    return [PositionEpisodeSchema.from_episode(episode) for episode in episodes]
