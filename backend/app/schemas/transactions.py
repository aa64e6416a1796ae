"""Pydantic schemas for the synced transaction history."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from .positions import CamelModel


class TransactionHistorySchema(CamelModel):
    transaction_id: str
    executed_at: datetime
    transaction_type: str
    instrument_type: str | None = None
    action: str | None = None
    symbol: str | None = None
    underlying_symbol: str | None = None
    quantity: float | None = None
    price: float | None = None
    value: float | None = None
    value_effect: str | None = None
    description: str | None = None
    closed_position_id: int | None = None


class SyncResponse(CamelModel):
    synced: int = Field(..., description="Transactions stored or refreshed")
    start_date: str
    end_date: str
