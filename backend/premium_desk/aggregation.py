"""Aggregate a full brokerage ledger into option-income position episodes."""
from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from .episodes import track_episodes
from .exceptions import InvalidInputError
from .models import PositionEpisode, TransactionRecord

logger = logging.getLogger(__name__)


def _group_by_underlying(transactions: Sequence[TransactionRecord]) -> Dict[str, List[TransactionRecord]]:
    grouped: Dict[str, List[TransactionRecord]] = {}
    skipped = 0
    for tx in transactions:
        if not tx.is_trackable:
            skipped += 1
            continue
        grouped.setdefault(tx.underlying, []).append(tx)
    if skipped:
        logger.debug("Ignored %d transactions without a symbol or tradable instrument", skipped)
    return grouped


def aggregate_positions(transactions: Sequence[TransactionRecord]) -> List[PositionEpisode]:
    """Return every option-bearing episode across all symbols, newest first.

    The ledger may arrive in any order; it is sorted by execution time with
    ties kept in input order before grouping by underlying symbol. Episodes
    without any option transaction are dropped from the result.
    """

    if not isinstance(transactions, (list, tuple)):
        raise InvalidInputError(
            f"Ledger must be a list of transactions, got {type(transactions).__name__}"
        )
    for tx in transactions:
        if not isinstance(tx, TransactionRecord):
            raise InvalidInputError(f"Ledger entries must be TransactionRecord, got {type(tx).__name__}")

    ordered = sorted(transactions, key=lambda tx: tx.executed_at)
    episodes: List[PositionEpisode] = []
    for symbol, symbol_transactions in _group_by_underlying(ordered).items():
        symbol_episodes = track_episodes(symbol_transactions)
        logger.debug("Built %d episodes for %s", len(symbol_episodes), symbol)
        episodes.extend(ep for ep in symbol_episodes if ep.total_option_transactions > 0)

    episodes.sort(key=lambda ep: ep.first_transaction_date, reverse=True)
    return episodes


__all__ = ["aggregate_positions"]
