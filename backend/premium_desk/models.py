"""Domain models used by the Premium Desk position aggregator."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple

ZERO = Decimal("0")


class InstrumentType(str, enum.Enum):
    EQUITY = "Equity"
    EQUITY_OPTION = "Equity Option"
    MONEY_MOVEMENT = "Money Movement"
    OTHER = "Other"


class TransactionAction(str, enum.Enum):
    BUY_TO_OPEN = "Buy to Open"
    BUY = "Buy"
    SELL_TO_CLOSE = "Sell to Close"
    SELL_TO_OPEN = "Sell to Open"
    BUY_TO_CLOSE = "Buy to Close"
    RECEIVE_DELIVER = "Receive Deliver"
    OTHER = "Other"


class ValueEffect(str, enum.Enum):
    CREDIT = "Credit"
    DEBIT = "Debit"
    NONE = "None"


EQUITY_OPENING_ACTIONS = frozenset({TransactionAction.BUY_TO_OPEN, TransactionAction.BUY})
OPTION_OPENING_ACTIONS = frozenset({TransactionAction.SELL_TO_OPEN})


def underlying_symbol(symbol: str | None) -> str:
    """Collapse ``"AAPL  240119C00150000"`` to ``"AAPL"``."""

    if not symbol:
        return ""
    parts = str(symbol).split()
    return parts[0] if parts else ""


def as_utc(moment: datetime) -> datetime:
    """Naive times are read as UTC; aware ones are converted to it."""

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass(frozen=True)
class TransactionRecord:
    """A normalized brokerage transaction; ``executed_at`` is held in UTC."""

    id: str
    executed_at: datetime
    instrument_type: InstrumentType
    action: TransactionAction
    symbol: str
    quantity: Decimal
    price: Decimal
    value: Decimal
    value_effect: ValueEffect
    transaction_type: str = ""
    description: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "executed_at", as_utc(self.executed_at))

    @property
    def underlying(self) -> str:
        return underlying_symbol(self.symbol)

    @property
    def is_trackable(self) -> bool:
        return bool(self.underlying) and self.instrument_type in (
            InstrumentType.EQUITY,
            InstrumentType.EQUITY_OPTION,
        )


@dataclass(frozen=True)
class PositionEpisode:
    """One continuous holding period for an underlying symbol."""

    symbol: str
    first_transaction_date: datetime
    last_transaction_date: datetime
    total_shares: Decimal
    total_shares_bought: Decimal
    total_shares_sold: Decimal
    total_cost: Decimal
    total_proceeds: Decimal
    avg_cost_basis: Decimal
    total_option_premium: Decimal
    total_option_contracts: Decimal
    total_option_transactions: int
    equity_transactions: int
    is_open: bool
    realized_pl: Decimal
    total_return: Decimal
    return_percentage: Decimal
    days_held: int
    transactions: Tuple[TransactionRecord, ...] = field(default_factory=tuple)

    @property
    def total_transactions(self) -> int:
        return len(self.transactions)

    @property
    def grouping_key(self) -> str:
        """Stable identifier used when persisting closed episodes."""

        return f"{self.symbol}:{self.first_transaction_date.isoformat()}"


__all__ = [
    "ZERO",
    "InstrumentType",
    "TransactionAction",
    "ValueEffect",
    "EQUITY_OPENING_ACTIONS",
    "OPTION_OPENING_ACTIONS",
    "underlying_symbol",
    "TransactionRecord",
    "PositionEpisode",
]
