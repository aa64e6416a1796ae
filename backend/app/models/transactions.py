"""Brokerage transaction history synced from Tastytrade."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

VALUE_EFFECTS = ("Credit", "Debit", "None")


class TransactionHistory(Base):
    __tablename__ = "transactions_history"
    __table_args__ = (
        Index("ix_transactions_history_underlying_executed", "underlying_symbol", "executed_at"),
    )

    transaction_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    executed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    transaction_type: Mapped[str] = mapped_column(String(64))
    instrument_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    action: Mapped[str | None] = mapped_column(String(32), nullable=True)
    symbol: Mapped[str | None] = mapped_column(String(64), nullable=True)
    underlying_symbol: Mapped[str | None] = mapped_column(String(20), nullable=True)
    quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)
    value: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)
    value_effect: Mapped[str | None] = mapped_column(
        Enum(*VALUE_EFFECTS, name="value_effect"), nullable=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    closed_position_id: Mapped[int | None] = mapped_column(
        ForeignKey("closed_positions.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    closed_position: Mapped[Optional["ClosedPosition"]] = relationship(back_populates="transactions")


__all__ = ["TransactionHistory", "VALUE_EFFECTS"]
