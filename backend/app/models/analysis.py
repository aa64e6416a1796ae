"""Symbol screening results and scan progress tracking."""

from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class AnalysisResult(Base):
    __tablename__ = "analysis_results"

    id: Mapped[int] = mapped_column(primary_key=True)
    symbol: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    current_price: Mapped[float | None] = mapped_column(Numeric(18, 4, asdecimal=False), nullable=True)
    stock_bid: Mapped[float | None] = mapped_column(Numeric(18, 4, asdecimal=False), nullable=True)
    stock_ask: Mapped[float | None] = mapped_column(Numeric(18, 4, asdecimal=False), nullable=True)
    stock_spread: Mapped[float | None] = mapped_column(Numeric(18, 4, asdecimal=False), nullable=True)
    option_symbol: Mapped[str | None] = mapped_column(String(64), nullable=True)
    option_strike_price: Mapped[float | None] = mapped_column(Numeric(18, 4, asdecimal=False), nullable=True)
    option_bid: Mapped[float | None] = mapped_column(Numeric(18, 4, asdecimal=False), nullable=True)
    option_ask: Mapped[float | None] = mapped_column(Numeric(18, 4, asdecimal=False), nullable=True)
    option_mid_price: Mapped[float | None] = mapped_column(Numeric(18, 4, asdecimal=False), nullable=True)
    option_mid_percent: Mapped[float | None] = mapped_column(Numeric(18, 6, asdecimal=False), nullable=True)
    option_expiration_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    analyzed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class ProgressType(str, enum.Enum):
    START = "start"
    PROGRESS = "progress"
    COMPLETE = "complete"
    ERROR = "error"


class ProgressState(Base):
    __tablename__ = "progress_states"

    id: Mapped[int] = mapped_column(primary_key=True)
    session_id: Mapped[str] = mapped_column(String(64), unique=True)
    type: Mapped[str] = mapped_column(String(16), default=ProgressType.START.value)
    current: Mapped[int] = mapped_column(Integer, default=0)
    total: Mapped[int] = mapped_column(Integer, default=0)
    symbol: Mapped[str | None] = mapped_column(String(20), nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)


__all__ = ["AnalysisResult", "ProgressState", "ProgressType"]
