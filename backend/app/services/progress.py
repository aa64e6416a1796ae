"""Persistence of scan progress so clients can resume watching a refresh."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ProgressState, ProgressType

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Write one ``ProgressState`` row per scan session and keep it current."""

    def __init__(self, session: AsyncSession, session_id: str):
        self._session = session
        self.session_id = session_id
        self._state: ProgressState | None = None

    async def _load(self) -> ProgressState:
        if self._state is None:
            result = await self._session.execute(
                select(ProgressState).where(ProgressState.session_id == self.session_id)
            )
            state = result.scalar_one_or_none()
            if state is None:
                state = ProgressState(session_id=self.session_id)
                self._session.add(state)
            self._state = state
        return self._state

    async def start(self, total: int, message: str | None = None) -> ProgressState:
        state = await self._load()
        state.type = ProgressType.START.value
        state.current = 0
        state.total = total
        state.message = message
        state.started_at = datetime.utcnow()
        state.completed_at = None
        state.error_message = None
        await self._session.commit()
        return state

    async def advance(self, current: int, symbol: str | None = None, message: str | None = None) -> ProgressState:
        state = await self._load()
        state.type = ProgressType.PROGRESS.value
        state.current = current
        state.symbol = symbol
        state.message = message
        await self._session.commit()
        return state

    async def complete(self, message: str | None = None) -> ProgressState:
        state = await self._load()
        state.type = ProgressType.COMPLETE.value
        state.current = state.total
        state.message = message
        state.completed_at = datetime.utcnow()
        await self._session.commit()
        return state

    async def fail(self, error: str) -> ProgressState:
        state = await self._load()
        state.type = ProgressType.ERROR.value
        state.error_message = error
        state.completed_at = datetime.utcnow()
        await self._session.commit()
        logger.warning("Scan %s failed: %s", self.session_id, error)
        return state

    async def record(self, event: dict[str, Any]) -> ProgressState:
        """Apply a scanner progress event."""

        kind = event.get("type")
        if kind == ProgressType.START.value:
            return await self.start(int(event.get("total", 0)), event.get("message"))
        if kind == ProgressType.PROGRESS.value:
            return await self.advance(int(event.get("current", 0)), event.get("symbol"), event.get("message"))
        if kind == ProgressType.COMPLETE.value:
            return await self.complete(event.get("message"))
        return await self.fail(str(event.get("message") or "Unknown error"))


async def latest_progress(session: AsyncSession) -> ProgressState | None:
    result = await session.execute(
        select(ProgressState).order_by(ProgressState.updated_at.desc(), ProgressState.id.desc()).limit(1)
    )
    return result.scalar_one_or_none()


__all__ = ["ProgressTracker", "latest_progress"]
