"""Latest scan progress for clients reconnecting to a refresh."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas import ProgressStateSchema
from app.services.progress import latest_progress

router = APIRouter()


@router.get("", response_model=ProgressStateSchema | None, response_model_by_alias=True)
async def get_progress_state(session: AsyncSession = Depends(get_db)) -> ProgressStateSchema | None:
    state = await latest_progress(session)
    if state is None:
        return None
    return ProgressStateSchema.model_validate(state)
