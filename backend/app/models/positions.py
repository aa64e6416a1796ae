"""Closed position episodes recorded from the aggregated ledger."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class ClosedPosition(Base):
    __tablename__ = "closed_positions"

    id: Mapped[int] = mapped_column(primary_key=True)
    symbol: Mapped[str] = mapped_column(String(20), index=True)
    grouping_key: Mapped[str] = mapped_column(String(96), unique=True)
    total_shares: Mapped[Decimal] = mapped_column(Numeric(18, 4), default=0)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0)
    total_proceeds: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0)
    realized_pl: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0)
    total_option_premium: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0)
    total_return: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0)
    return_percentage: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0)
    first_transaction_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    last_transaction_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    total_option_contracts: Mapped[int] = mapped_column(Integer, default=0)
    total_option_transactions: Mapped[int] = mapped_column(Integer, default=0)
    equity_transactions: Mapped[int] = mapped_column(Integer, default=0)
    avg_cost_basis: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0)
    days_held: Mapped[int] = mapped_column(Integer, default=0)
    closed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    transactions: Mapped[list["TransactionHistory"]] = relationship(back_populates="closed_position")


__all__ = ["ClosedPosition"]
