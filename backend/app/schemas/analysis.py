"""Pydantic schemas for scan results and progress."""

from __future__ import annotations

from datetime import date, datetime

from .positions import CamelModel


class AnalysisResultSchema(CamelModel):
    symbol: str
    current_price: float | None = None
    stock_bid: float | None = None
    stock_ask: float | None = None
    stock_spread: float | None = None
    option_symbol: str | None = None
    option_strike_price: float | None = None
    option_bid: float | None = None
    option_ask: float | None = None
    option_mid_price: float | None = None
    option_mid_percent: float | None = None
    option_expiration_date: date | None = None
    status: str | None = None
    notes: str | None = None
    analyzed_at: datetime


class ProgressStateSchema(CamelModel):
    session_id: str
    type: str
    current: int
    total: int
    symbol: str | None = None
    message: str | None = None
    started_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
    error_message: str | None = None
