"""Core package for the Premium Desk position aggregator."""

from .aggregation import aggregate_positions
from .episodes import track_episodes
from .exceptions import InvalidInputError, MalformedTransactionError
from .ledger import parse_ledger, parse_transaction
from .models import (
    InstrumentType,
    PositionEpisode,
    TransactionAction,
    TransactionRecord,
    ValueEffect,
    underlying_symbol,
)

__all__ = [
    "InstrumentType",
    "TransactionAction",
    "ValueEffect",
    "TransactionRecord",
    "PositionEpisode",
    "InvalidInputError",
    "MalformedTransactionError",
    "underlying_symbol",
    "parse_transaction",
    "parse_ledger",
    "track_episodes",
    "aggregate_positions",
]
