"""Brokerage transaction parsing tests."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from premium_desk import InvalidInputError, MalformedTransactionError, parse_ledger, parse_transaction
from premium_desk.ledger import parse_action, parse_decimal, parse_instrument_type, parse_value_effect
from premium_desk.models import InstrumentType, TransactionAction, ValueEffect, underlying_symbol


def raw_option(**overrides):
    payload = {
        "id": 348117,
        "executed-at": "2024-12-02T15:04:11.000+00:00",
        "transaction-type": "Trade",
        "instrument-type": "Equity Option",
        "action": "Sell to Open",
        "symbol": "NVDA  241206C00140000",
        "quantity": "2.0",
        "price": "1.45",
        "value": "290.0",
        "value-effect": "Credit",
        "description": "Sold 2 NVDA 12/06/24 Call 140.00 @ 1.45",
    }
    payload.update(overrides)
    return payload


def test_parses_hyphenated_brokerage_payload():
    tx = parse_transaction(raw_option())

    assert tx.id == "348117"
    assert tx.executed_at == datetime(2024, 12, 2, 15, 4, 11, tzinfo=timezone.utc)
    assert tx.instrument_type is InstrumentType.EQUITY_OPTION
    assert tx.action is TransactionAction.SELL_TO_OPEN
    assert tx.quantity == Decimal("2.0")
    assert tx.value == Decimal("290.0")
    assert tx.value_effect is ValueEffect.CREDIT
    assert tx.underlying == "NVDA"
    assert tx.transaction_type == "Trade"


def test_parses_snake_case_payload_and_absolute_value():
    tx = parse_transaction(
        {
            "transaction_id": "abc",
            "executed_at": "2024-12-02T15:04:11Z",
            "instrument_type": "Equity",
            "action": "BUY_TO_OPEN",
            "symbol": "NVDA",
            "quantity": 10,
            "price": 140.5,
            "value": -1405,
            "value_effect": "Debit",
        }
    )

    assert tx.id == "abc"
    assert tx.action is TransactionAction.BUY_TO_OPEN
    assert tx.value == Decimal("1405")
    assert tx.price == Decimal("140.5")


def test_naive_timestamp_is_utc():
    tx = parse_transaction(raw_option(**{"executed-at": "2024-12-02T15:04:11"}))

    assert tx.executed_at.tzinfo == timezone.utc


def test_offset_timestamp_is_converted_to_utc():
    tx = parse_transaction(raw_option(**{"executed-at": "2024-11-04T09:30:00-05:00"}))

    assert tx.executed_at == datetime(2024, 11, 4, 14, 30, tzinfo=timezone.utc)
    assert tx.executed_at.utcoffset() == timedelta(0)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Buy to Open", TransactionAction.BUY_TO_OPEN),
        ("buy-to-open", TransactionAction.BUY_TO_OPEN),
        ("BUY", TransactionAction.BUY),
        ("Sell to Close", TransactionAction.SELL_TO_CLOSE),
        ("Buy to Close", TransactionAction.BUY_TO_CLOSE),
        ("Receive Deliver", TransactionAction.RECEIVE_DELIVER),
        ("Exercise", TransactionAction.OTHER),
        (None, TransactionAction.OTHER),
    ],
)
def test_action_vocabulary(value, expected):
    assert parse_action(value) is expected


def test_empty_action_on_receive_deliver_row():
    assert parse_action("", "Receive Deliver") is TransactionAction.RECEIVE_DELIVER
    assert parse_action(None, "Money Movement") is TransactionAction.OTHER


def test_instrument_and_effect_fallbacks():
    assert parse_instrument_type("Money Movement") is InstrumentType.MONEY_MOVEMENT
    assert parse_instrument_type("Cryptocurrency") is InstrumentType.OTHER
    assert parse_value_effect("") is ValueEffect.NONE


def test_blank_numbers_are_zero():
    assert parse_decimal(None, "quantity") == Decimal("0")
    assert parse_decimal("  ", "quantity") == Decimal("0")


@pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", True])
def test_bad_numbers_are_malformed(value):
    with pytest.raises(MalformedTransactionError):
        parse_decimal(value, "value", transaction_id="1")


def test_missing_id_or_timestamp_is_malformed():
    with pytest.raises(MalformedTransactionError):
        parse_transaction(raw_option(id=None))
    with pytest.raises(MalformedTransactionError) as excinfo:
        parse_transaction(raw_option(**{"executed-at": None}))
    assert excinfo.value.transaction_id == "348117"


def test_parse_ledger_skips_malformed_rows(caplog):
    rows = [raw_option(), raw_option(id=2, quantity="two"), "garbage", raw_option(id=3)]

    with caplog.at_level(logging.WARNING, logger="premium_desk.ledger"):
        records = parse_ledger(rows)

    assert [tx.id for tx in records] == ["348117", "3"]
    assert "Skipping malformed transaction 2" in caplog.text


def test_parse_ledger_requires_a_list():
    with pytest.raises(InvalidInputError):
        parse_ledger({"items": []})  # type: ignore[arg-type]


def test_underlying_symbol():
    assert underlying_symbol("TSLA   240621C00250000") == "TSLA"
    assert underlying_symbol("TSLA") == "TSLA"
    assert underlying_symbol("") == ""
    assert underlying_symbol(None) == ""
