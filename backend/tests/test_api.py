"""HTTP API tests against a temporary SQLite database."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from app.config import AppSettings
from app.db.init import init_database
from app.db.session import Database
from app.main import create_app
from app.models import ClosedPosition, TransactionHistory
from app.providers.tastytrade import TastytradeError
from app.services.ledger import load_ledger, store_transactions
from premium_desk import aggregate_positions
from premium_desk.screening import OptionCandidate, QuoteSnapshot


def raw(tx_id, executed_at, instrument, action, symbol, quantity, value, effect):
    return {
        "id": tx_id,
        "executed-at": executed_at,
        "transaction-type": "Receive Deliver" if action == "Receive Deliver" else "Trade",
        "instrument-type": instrument,
        "action": action,
        "symbol": symbol,
        "quantity": quantity,
        "price": "0",
        "value": value,
        "value-effect": effect,
    }


HISTORY = [
    raw(1, "2024-11-04T14:30:00+00:00", "Equity", "Buy to Open", "AAPL", "100", "-5000", "Debit"),
    raw(2, "2024-11-05T14:30:00+00:00", "Equity Option", "Sell to Open", "AAPL  241115C00055000", "1", "200", "Credit"),
    raw(3, "2024-11-15T21:00:00+00:00", "Equity Option", "Receive Deliver", "AAPL  241115C00055000", "1", "0", "None"),
    raw(4, "2024-11-19T14:30:00+00:00", "Equity", "Sell to Close", "AAPL", "100", "5500", "Credit"),
    raw(5, "2024-11-20T15:00:00+00:00", "Equity", "Buy to Open", "TSLA", "100", "-25000", "Debit"),
    raw(6, "2024-11-20T15:01:00+00:00", "Equity Option", "Sell to Open", "TSLA  241129C00260000", "1", "600", "Credit"),
    raw(7, "2024-11-21T00:00:00+00:00", "Money Movement", "", "", "0", "1000", "Credit"),
    raw(8, "2024-11-22T00:00:00+00:00", "Equity", "Buy to Open", "TSLA", "ten", "1", "Debit"),
]


class FakeBroker:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.closed = False

    async def get_account_history(self, start, end):
        if self.fail:
            raise TastytradeError("Tastytrade error 500")
        return HISTORY

    async def get_positions(self):
        if self.fail:
            raise TastytradeError("Tastytrade error 500")
        return [{"symbol": "TSLA", "quantity": 100, "option-symbol": "TSLA  241129C00260000", "option-price": 260.0}]

    async def get_quotes(self, symbols):
        return [QuoteSnapshot(symbol=symbol, last=50.0, bid=49.9, ask=50.1) for symbol in symbols]

    async def get_next_option(self, symbol, quote):
        return OptionCandidate(
            symbol=f"{symbol}  C00052000",
            underlying=symbol,
            strike_price=52.0,
            expiration_date=datetime.now(timezone.utc).date() + timedelta(days=3),
            days_to_expiration=3,
            bid=1.6,
            ask=1.8,
        )

    async def aclose(self) -> None:
        self.closed = True


class StubResponses:
    def create(self, **kwargs):
        return SimpleNamespace(output_text="Keep the TSLA covered call.")


def _settings(tmp_path: Path, **overrides) -> AppSettings:
    values = {
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        "tastytrade_account_number": None,
        "openai_api_key": None,
        "scan_delay_ms": 0,
    }
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


@asynccontextmanager
async def api_client(tmp_path: Path, broker=None, llm_client=None, **overrides):
    settings = _settings(tmp_path, **overrides)
    database = Database(settings.database_url)
    app = create_app(settings, database=database, broker=broker, llm_client=llm_client)
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.mark.asyncio
async def test_health(tmp_path: Path):
    async with api_client(tmp_path) as client:
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_sync_then_list_history(tmp_path: Path):
    async with api_client(tmp_path, broker=FakeBroker()) as client:
        sync = await client.post("/api/account-history/sync", params={"start-date": "2024-11-01"})
        missing = await client.get("/api/account-history", params={"start-date": "2024-11-01"})
        listed = await client.get(
            "/api/account-history", params={"start-date": "2024-11-01", "end-date": "2024-11-19"}
        )

    assert sync.status_code == 200
    assert sync.json()["synced"] == 7
    assert sync.json()["startDate"] == "2024-11-01"
    assert missing.status_code == 400
    assert listed.status_code == 200
    rows = listed.json()
    assert [row["transactionId"] for row in rows] == ["1", "2", "3", "4"]
    assert rows[0]["underlyingSymbol"] == "AAPL"
    assert rows[0]["value"] == 5000.0


@pytest.mark.asyncio
async def test_sync_reports_broker_failure(tmp_path: Path):
    async with api_client(tmp_path, broker=FakeBroker(fail=True)) as client:
        response = await client.post("/api/account-history/sync")

    assert response.status_code == 502


@pytest.mark.asyncio
async def test_aggregated_positions_record_closed_episodes(tmp_path: Path):
    async with api_client(tmp_path, broker=FakeBroker()) as client:
        await client.post("/api/account-history/sync", params={"start-date": "2024-11-01"})
        first = await client.get("/api/positions/aggregated")
        second = await client.get("/api/positions/aggregated")

    database = Database(_settings(tmp_path).database_url)
    try:
        async with database.session() as session:
            closed = (await session.execute(select(ClosedPosition))).scalars().all()
            linked = (
                await session.execute(
                    select(TransactionHistory.transaction_id).where(
                        TransactionHistory.closed_position_id.is_not(None)
                    )
                )
            ).scalars().all()
    finally:
        await database.dispose()

    assert first.status_code == 200
    assert first.json() == second.json()
    episodes = first.json()
    assert [episode["symbol"] for episode in episodes] == ["TSLA", "AAPL"]
    tsla, aapl = episodes
    assert tsla["isOpen"] is True
    assert tsla["totalTransactions"] == 2
    assert tsla["returnPercentage"] == pytest.approx(2.4)
    assert aapl["isOpen"] is False
    assert aapl["realizedPL"] == pytest.approx(500.0)
    assert aapl["totalReturn"] == pytest.approx(700.0)
    assert aapl["returnPercentage"] == pytest.approx(14.0)
    assert aapl["daysHeld"] == 15

    assert len(closed) == 1
    assert closed[0].symbol == "AAPL"
    assert closed[0].grouping_key == "AAPL:2024-11-04T14:30:00+00:00"
    assert sorted(linked) == ["1", "2", "3", "4"]


@pytest.mark.asyncio
async def test_empty_ledger_aggregates_to_empty_list(tmp_path: Path):
    async with api_client(tmp_path) as client:
        response = await client.get("/api/positions/aggregated")

    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_positions_require_configured_broker(tmp_path: Path):
    async with api_client(tmp_path) as client:
        unconfigured = await client.get("/api/positions")
    async with api_client(tmp_path, broker=FakeBroker(fail=True)) as client:
        failing = await client.get("/api/positions")
    async with api_client(tmp_path, broker=FakeBroker()) as client:
        ok = await client.get("/api/positions")

    assert unconfigured.status_code == 503
    assert failing.status_code == 502
    assert ok.json()[0]["option-price"] == 260.0


@pytest.mark.asyncio
async def test_refresh_streams_progress_and_stores_results(tmp_path: Path):
    async with api_client(tmp_path, broker=FakeBroker()) as client:
        refresh = await client.get("/api/trading-data/refresh", params={"symbols": "aapl,msft"})
        results = await client.get("/api/trading-data")
        progress = await client.get("/api/progress-state")

    assert refresh.status_code == 200
    assert refresh.headers["content-type"].startswith("text/event-stream")
    events = [json.loads(line[len("data: "):]) for line in refresh.text.split("\n\n") if line.startswith("data: ")]
    assert [event["type"] for event in events] == ["start", "progress", "progress", "complete"]
    assert events[-1]["message"] == "Analyzed 2 symbols, 2 ready"

    rows = results.json()
    assert [row["symbol"] for row in rows] == ["AAPL", "MSFT"]
    assert rows[0]["status"] == "READY"
    assert rows[0]["optionSymbol"] == "AAPL  C00052000"

    state = progress.json()
    assert state["type"] == "complete"
    assert state["current"] == state["total"] == 2


@pytest.mark.asyncio
async def test_progress_state_is_null_before_any_scan(tmp_path: Path):
    async with api_client(tmp_path) as client:
        response = await client.get("/api/progress-state")

    assert response.status_code == 200
    assert response.json() is None


@pytest.mark.asyncio
async def test_consult_preview_and_answer(tmp_path: Path):
    llm = SimpleNamespace(responses=StubResponses())
    async with api_client(tmp_path, broker=FakeBroker(), llm_client=llm) as client:
        await client.post("/api/account-history/sync", params={"start-date": "2024-11-01"})
        preview = await client.post("/api/ai/consult", json={"preview": True})
        answer = await client.post("/api/ai/consult", json={"preview": False})

    assert preview.status_code == 200
    assert '"symbol": "TSLA"' in preview.json()["prompt"]
    assert preview.json()["analysis"] is None
    assert answer.json()["analysis"] == "Keep the TSLA covered call."


@pytest.mark.asyncio
async def test_consult_without_key_is_unavailable(tmp_path: Path):
    async with api_client(tmp_path) as client:
        response = await client.post("/api/ai/consult", json={})

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_stored_offset_timestamps_load_back_in_utc(database_url: str):
    rows = [
        raw("1", "2024-11-04T09:30:00-05:00", "Equity", "Buy to Open", "AMD", "100", "-14000", "Debit"),
        raw("2", "2024-11-04T14:00:00+00:00", "Equity Option", "Sell to Open", "AMD   241115C00145000", "1", "150", "Credit"),
    ]
    database = Database(database_url)
    await init_database(database)
    try:
        async with database.session() as session:
            assert await store_transactions(session, rows) == 2
        async with database.session() as session:
            ledger = await load_ledger(session)
    finally:
        await database.dispose()

    assert [tx.id for tx in ledger] == ["2", "1"]
    assert ledger[1].executed_at == datetime(2024, 11, 4, 14, 30, tzinfo=timezone.utc)
    (episode,) = aggregate_positions(ledger)
    assert episode.first_transaction_date == datetime(2024, 11, 4, 14, 0, tzinfo=timezone.utc)
