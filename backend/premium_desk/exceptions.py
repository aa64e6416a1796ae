"""Errors raised at the ledger boundary."""

from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised when a ledger cannot be processed at all."""


class MalformedTransactionError(InvalidInputError):
    """Raised when a single brokerage transaction cannot be normalized."""

    def __init__(self, message: str, *, transaction_id: str | None = None) -> None:
        super().__init__(message)
        self.transaction_id = transaction_id


__all__ = ["InvalidInputError", "MalformedTransactionError"]
