"""Fold a single symbol's transactions into position episodes."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from .models import (
    EQUITY_OPENING_ACTIONS,
    OPTION_OPENING_ACTIONS,
    ZERO,
    InstrumentType,
    PositionEpisode,
    TransactionRecord,
    ValueEffect,
)

HUNDRED = Decimal("100")
SECONDS_PER_DAY = 86400


@dataclass
class _EpisodeState:
    """Running accumulators for the episode currently being built."""

    symbol: str
    first_transaction_date: datetime
    last_transaction_date: datetime
    total_shares: Decimal = ZERO
    total_shares_bought: Decimal = ZERO
    total_shares_sold: Decimal = ZERO
    total_cost: Decimal = ZERO
    total_proceeds: Decimal = ZERO
    total_option_premium: Decimal = ZERO
    total_option_contracts: Decimal = ZERO
    total_option_transactions: int = 0
    equity_transactions: int = 0
    transactions: List[TransactionRecord] = field(default_factory=list)

    @property
    def avg_cost_basis(self) -> Decimal:
        if self.total_shares_bought > 0:
            return self.total_cost / self.total_shares_bought
        return ZERO

    @property
    def is_open(self) -> bool:
        return self.total_shares > 0 or self.total_option_contracts > 0

    def apply(self, tx: TransactionRecord) -> None:
        self.transactions.append(tx)
        self.last_transaction_date = tx.executed_at
        quantity = abs(tx.quantity)
        value = abs(tx.value)

        if tx.instrument_type == InstrumentType.EQUITY:
            if tx.action in EQUITY_OPENING_ACTIONS:
                self.total_shares += quantity
                self.total_shares_bought += quantity
                self.total_cost += value
            else:
                self.total_shares -= quantity
                self.total_shares_sold += quantity
                self.total_proceeds += value
            self.equity_transactions += 1
        elif tx.instrument_type == InstrumentType.EQUITY_OPTION:
            self.total_option_transactions += 1
            if tx.value_effect == ValueEffect.CREDIT:
                self.total_option_premium += value
            elif tx.value_effect == ValueEffect.DEBIT:
                self.total_option_premium -= value
            if tx.action in OPTION_OPENING_ACTIONS:
                self.total_option_contracts += quantity
            else:
                self.total_option_contracts -= quantity

    def snapshot(self) -> PositionEpisode:
        """Freeze the accumulators, deriving P/L with the open or closed formulas."""

        is_open = self.is_open
        avg_cost_basis = self.avg_cost_basis
        if is_open:
            realized_pl = self.total_proceeds - self.total_shares_sold * avg_cost_basis
        else:
            realized_pl = self.total_proceeds - self.total_cost
        total_return = realized_pl + self.total_option_premium

        # Open and closed episodes use different bases; both are reported as-is.
        if self.total_cost <= 0:
            return_percentage = ZERO
        elif is_open:
            return_percentage = (total_return / self.total_cost) * HUNDRED
        else:
            return_percentage = (
                (self.total_proceeds + self.total_option_premium) / self.total_cost - 1
            ) * HUNDRED

        return PositionEpisode(
            symbol=self.symbol,
            first_transaction_date=self.first_transaction_date,
            last_transaction_date=self.last_transaction_date,
            total_shares=self.total_shares,
            total_shares_bought=self.total_shares_bought,
            total_shares_sold=self.total_shares_sold,
            total_cost=self.total_cost,
            total_proceeds=self.total_proceeds,
            avg_cost_basis=avg_cost_basis,
            total_option_premium=self.total_option_premium,
            total_option_contracts=self.total_option_contracts,
            total_option_transactions=self.total_option_transactions,
            equity_transactions=self.equity_transactions,
            is_open=is_open,
            realized_pl=realized_pl,
            total_return=total_return,
            return_percentage=return_percentage,
            days_held=days_between(self.first_transaction_date, self.last_transaction_date),
            transactions=tuple(self.transactions),
        )


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from ``start`` to ``end``, rounded up."""

    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def track_episodes(
    transactions: Iterable[TransactionRecord],
    *,
    finalize_open: bool = True,
) -> List[PositionEpisode]:
    """Split one symbol's chronologically ordered transactions into episodes.

    An episode starts with the first transaction seen while the symbol is flat
    and closes as soon as both the net share count and the net short option
    contract count drop to zero or below. The next transaction after a close
    starts a new episode. Money movements and unrecognized instruments never
    touch an episode.

    When ``finalize_open`` is true a trailing, still-open episode is included
    in the result using the open-position formulas; it is not closed.
    """

    episodes: List[PositionEpisode] = []
    current: Optional[_EpisodeState] = None

    for tx in transactions:
        if not tx.is_trackable:
            continue
        if current is None:
            current = _EpisodeState(
                symbol=tx.underlying,
                first_transaction_date=tx.executed_at,
                last_transaction_date=tx.executed_at,
            )
        current.apply(tx)
        if not current.is_open:
            episodes.append(current.snapshot())
            current = None

    if current is not None and finalize_open:
        episodes.append(current.snapshot())
    return episodes


__all__ = ["track_episodes", "days_between"]
