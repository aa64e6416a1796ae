"""Scanner, universe and progress tracking tests."""

from __future__ import annotations

from datetime import date

import pytest

from app.config import AppSettings
from app.db.init import init_database
from app.db.session import Database
from app.providers.tastytrade import TastytradeError
from app.providers.universe import SECTOR_ETFS, parse_constituents_csv
from app.services.progress import ProgressTracker, latest_progress
from app.services.scanner import default_universe, list_results, scan_symbols
from premium_desk.screening import OptionCandidate, QuoteSnapshot, ScreeningStatus, ScreeningThresholds

AS_OF = date(2024, 12, 2)


class FakeBroker:
    def __init__(self) -> None:
        self.quotes = {
            "AAPL": QuoteSnapshot(symbol="AAPL", last=50.0, bid=49.9, ask=50.1),
            "PENNY": QuoteSnapshot(symbol="PENNY", last=4.0, bid=3.9, ask=4.1),
            "BAD": QuoteSnapshot(symbol="BAD", last=80.0, bid=79.9, ask=80.1),
        }
        self.option_calls: list[str] = []

    async def get_quotes(self, symbols):
        return [self.quotes[symbol] for symbol in symbols if symbol in self.quotes]

    async def get_next_option(self, symbol, quote):
        self.option_calls.append(symbol)
        if symbol != "AAPL":
            raise TastytradeError("No valid expiration found in option chain")
        return OptionCandidate(
            symbol="AAPL  241206C00052000",
            underlying="AAPL",
            strike_price=52.0,
            expiration_date=date(2024, 12, 6),
            days_to_expiration=4,
            bid=1.6,
            ask=1.8,
        )


async def _database(url: str) -> Database:
    database = Database(url=url)
    await init_database(database)
    return database


@pytest.mark.asyncio
async def test_scan_persists_results_and_reports_progress(database_url: str):
    database = await _database(database_url)
    broker = FakeBroker()
    events: list[dict] = []

    async def on_progress(event: dict) -> None:
        events.append(event)

    try:
        async with database.session() as session:
            results = await scan_symbols(
                session,
                broker,
                ["AAPL", "PENNY", "BAD", "MISSING"],
                thresholds=ScreeningThresholds(),
                as_of=AS_OF,
                on_progress=on_progress,
            )
            rows = await list_results(session)
    finally:
        await database.dispose()

    assert [(r.symbol, r.status) for r in results] == [
        ("AAPL", ScreeningStatus.READY),
        ("PENNY", ScreeningStatus.LOW_STOCK_PRICE),
    ]
    assert broker.option_calls == ["AAPL", "BAD"]
    assert [event["type"] for event in events] == ["start", "progress", "progress", "progress", "progress", "complete"]
    assert [event.get("symbol") for event in events if event["type"] == "progress"] == [
        "AAPL",
        "PENNY",
        "BAD",
        "MISSING",
    ]
    assert {row.symbol: row.status for row in rows} == {"AAPL": "READY", "PENNY": "LOW_STOCK_PRICE"}
    aapl = next(row for row in rows if row.symbol == "AAPL")
    assert aapl.option_symbol == "AAPL  241206C00052000"
    assert aapl.option_expiration_date == date(2024, 12, 6)


@pytest.mark.asyncio
async def test_rescan_updates_existing_rows(database_url: str):
    database = await _database(database_url)
    broker = FakeBroker()
    try:
        async with database.session() as session:
            await scan_symbols(session, broker, ["AAPL"], thresholds=ScreeningThresholds(), as_of=AS_OF)
            broker.quotes["AAPL"] = QuoteSnapshot(symbol="AAPL", last=20.0, bid=19.9, ask=20.1)
            await scan_symbols(session, broker, ["AAPL"], thresholds=ScreeningThresholds(), as_of=AS_OF)
            rows = await list_results(session)
    finally:
        await database.dispose()

    assert len(rows) == 1
    assert rows[0].status == "LOW_STOCK_PRICE"
    assert rows[0].current_price == pytest.approx(20.0)


@pytest.mark.asyncio
async def test_progress_tracker_lifecycle(database_url: str):
    database = await _database(database_url)
    try:
        async with database.session() as session:
            tracker = ProgressTracker(session, "scan-1")
            await tracker.record({"type": "start", "total": 3})
            await tracker.record({"type": "progress", "current": 2, "total": 3, "symbol": "MSFT"})
            state = await latest_progress(session)
            assert state is not None
            assert (state.type, state.current, state.total, state.symbol) == ("progress", 2, 3, "MSFT")

            await tracker.record({"type": "error", "message": "quotes unavailable"})
            state = await latest_progress(session)
    finally:
        await database.dispose()

    assert state.type == "error"
    assert state.error_message == "quotes unavailable"
    assert state.completed_at is not None


class StubCsvResponse:
    def __init__(self, text: str, status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code


class StubHttp:
    def __init__(self, response: StubCsvResponse) -> None:
        self.response = response
        self.urls: list[str] = []

    async def get(self, url: str) -> StubCsvResponse:
        self.urls.append(url)
        return self.response


def test_constituents_csv_parsing():
    text = "Symbol,Security,GICS Sector\nAAPL,Apple Inc.,Information Technology\nBRK.B,Berkshire Hathaway,Financials\n"

    assert parse_constituents_csv(text) == ["AAPL", "BRK/B"]


@pytest.mark.asyncio
async def test_default_universe_appends_sector_etfs():
    settings = AppSettings(_env_file=None, sp500_constituents_url="https://example.test/sp500.csv")
    http = StubHttp(StubCsvResponse("Symbol,Security\nAAPL,Apple\nSPY,duplicate\n"))

    universe = await default_universe(settings, client=http)

    assert http.urls == ["https://example.test/sp500.csv"]
    assert universe[0] == "AAPL"
    assert universe.count("SPY") == 1
    assert set(SECTOR_ETFS) <= set(universe)


@pytest.mark.asyncio
async def test_default_universe_falls_back_to_etfs():
    settings = AppSettings(_env_file=None)
    http = StubHttp(StubCsvResponse("oops", status_code=503))

    assert await default_universe(settings, client=http) == list(SECTOR_ETFS)
