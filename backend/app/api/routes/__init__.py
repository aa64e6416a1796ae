"""Route registration helpers."""

from __future__ import annotations

from fastapi import APIRouter

from .account_history import router as account_history_router
from .ai import router as ai_router
from .positions import router as positions_router
from .progress import router as progress_router
from .trading_data import router as trading_data_router

api_router = APIRouter(prefix="/api")
api_router.include_router(account_history_router, prefix="/account-history", tags=["account-history"])
api_router.include_router(positions_router, prefix="/positions", tags=["positions"])
api_router.include_router(trading_data_router, prefix="/trading-data", tags=["trading-data"])
api_router.include_router(progress_router, prefix="/progress-state", tags=["trading-data"])
api_router.include_router(ai_router, prefix="/ai", tags=["ai"])

__all__ = ["api_router"]
