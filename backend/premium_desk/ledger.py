"""Normalization of raw brokerage transactions into ``TransactionRecord`` values.

Brokerage payloads arrive as loosely typed JSON objects keyed by hyphenated
names (``executed-at``, ``value-effect``) with numbers frequently encoded as
strings. Everything is mapped once here so the aggregation code only ever sees
typed records.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping

from .exceptions import InvalidInputError, MalformedTransactionError
from .models import InstrumentType, TransactionAction, TransactionRecord, ValueEffect, as_utc, underlying_symbol

logger = logging.getLogger(__name__)

RECEIVE_DELIVER_TYPE = "receivedeliver"

_ACTIONS = {
    "buytoopen": TransactionAction.BUY_TO_OPEN,
    "buy": TransactionAction.BUY,
    "selltoclose": TransactionAction.SELL_TO_CLOSE,
    "selltoopen": TransactionAction.SELL_TO_OPEN,
    "buytoclose": TransactionAction.BUY_TO_CLOSE,
    "receivedeliver": TransactionAction.RECEIVE_DELIVER,
}

_INSTRUMENTS = {
    "equity": InstrumentType.EQUITY,
    "equityoption": InstrumentType.EQUITY_OPTION,
    "moneymovement": InstrumentType.MONEY_MOVEMENT,
}

_VALUE_EFFECTS = {
    "credit": ValueEffect.CREDIT,
    "debit": ValueEffect.DEBIT,
}


def _token(value: Any) -> str:
    if value is None:
        return ""
    text = value.value if hasattr(value, "value") else str(value)
    return "".join(ch for ch in str(text).lower() if ch.isalnum())


def _field(raw: Mapping[str, Any], name: str) -> Any:
    """Look up ``name`` in either hyphenated or snake_case form."""

    for key in (name, name.replace("_", "-")):
        if key in raw:
            return raw[key]
    return None


def parse_action(action: Any, transaction_type: Any = None) -> TransactionAction:
    normalized = _token(action)
    if not normalized and _token(transaction_type) == RECEIVE_DELIVER_TYPE:
        return TransactionAction.RECEIVE_DELIVER
    return _ACTIONS.get(normalized, TransactionAction.OTHER)


def parse_instrument_type(value: Any) -> InstrumentType:
    return _INSTRUMENTS.get(_token(value), InstrumentType.OTHER)


def parse_value_effect(value: Any) -> ValueEffect:
    return _VALUE_EFFECTS.get(_token(value), ValueEffect.NONE)


def parse_decimal(value: Any, field_name: str, *, transaction_id: str | None = None) -> Decimal:
    """Parse a numeric field, treating ``None``/blank as zero."""

    if value is None or (isinstance(value, str) and not value.strip()):
        return Decimal("0")
    if isinstance(value, bool):
        raise MalformedTransactionError(f"{field_name} must be numeric", transaction_id=transaction_id)
    try:
        parsed = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise MalformedTransactionError(
            f"{field_name} is not a number: {value!r}", transaction_id=transaction_id
        ) from exc
    if not parsed.is_finite():
        raise MalformedTransactionError(f"{field_name} is not finite: {value!r}", transaction_id=transaction_id)
    return parsed


def parse_timestamp(value: Any, *, transaction_id: str | None = None) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise MalformedTransactionError(
                f"executed_at is not ISO-8601: {value!r}", transaction_id=transaction_id
            ) from exc
    else:
        raise MalformedTransactionError("executed_at is required", transaction_id=transaction_id)
    return as_utc(parsed)


def parse_transaction(raw: Mapping[str, Any]) -> TransactionRecord:
    """Map one brokerage transaction object into a ``TransactionRecord``."""

    if not isinstance(raw, Mapping):
        raise MalformedTransactionError(f"Transaction must be an object, got {type(raw).__name__}")

    raw_id = _field(raw, "id")
    if raw_id is None:
        raw_id = _field(raw, "transaction_id")
    if raw_id is None or str(raw_id).strip() == "":
        raise MalformedTransactionError("Transaction id is required")
    tx_id = str(raw_id)

    transaction_type = _field(raw, "transaction_type")
    symbol = _field(raw, "symbol")
    return TransactionRecord(
        id=tx_id,
        executed_at=parse_timestamp(_field(raw, "executed_at"), transaction_id=tx_id),
        instrument_type=parse_instrument_type(_field(raw, "instrument_type")),
        action=parse_action(_field(raw, "action"), transaction_type),
        symbol=str(symbol).strip() if symbol else "",
        quantity=parse_decimal(_field(raw, "quantity"), "quantity", transaction_id=tx_id),
        price=parse_decimal(_field(raw, "price"), "price", transaction_id=tx_id),
        value=abs(parse_decimal(_field(raw, "value"), "value", transaction_id=tx_id)),
        value_effect=parse_value_effect(_field(raw, "value_effect")),
        transaction_type=str(transaction_type or ""),
        description=_field(raw, "description"),
    )


def parse_ledger(rows: Iterable[Mapping[str, Any]]) -> List[TransactionRecord]:
    """Parse a full ledger, skipping rows that cannot be normalized."""

    if not isinstance(rows, (list, tuple)):
        raise InvalidInputError(f"Ledger must be a list of transactions, got {type(rows).__name__}")

    records: List[TransactionRecord] = []
    for index, raw in enumerate(rows):
        try:
            records.append(parse_transaction(raw))
        except MalformedTransactionError as exc:
            logger.warning(
                "Skipping malformed transaction %s at index %d: %s",
                exc.transaction_id or "<unknown>",
                index,
                exc,
            )
    return records


__all__ = [
    "underlying_symbol",
    "parse_action",
    "parse_instrument_type",
    "parse_value_effect",
    "parse_decimal",
    "parse_timestamp",
    "parse_transaction",
    "parse_ledger",
]
