"""Run the covered-call scanner from the command line."""

from __future__ import annotations

import argparse
import asyncio
from typing import Any

from app.config import get_settings
from app.core.logging import setup_logging
from app.db.init import init_database
from app.db.session import Database
from app.providers.tastytrade import TastytradeClient
from app.services.scanner import default_universe, scan_symbols
from premium_desk.screening import ScreeningStatus


async def _print_progress(event: dict[str, Any]) -> None:
    if event["type"] == "progress":
        print(f"[{event['current']}/{event['total']}] {event['symbol']}")


async def _run(symbols: list[str], delay_ms: int) -> None:
    settings = get_settings()
    database = Database(settings.database_url)
    client = TastytradeClient(settings)
    try:
        await init_database(database)
        universe = symbols or await default_universe(settings)
        async with database.session() as session:
            results = await scan_symbols(
                session,
                client,
                universe,
                thresholds=settings.screening_thresholds(),
                delay_ms=delay_ms,
                on_progress=_print_progress,
            )
        for result in results:
            if result.status is ScreeningStatus.READY:
                print(
                    f"{result.symbol:<6} {result.option_symbol} "
                    f"mid={result.option_mid_percent:.2f}% exp={result.option_expiration_date}"
                )
        print(f"Scanned {len(results)} of {len(universe)} symbols")
    finally:
        await client.logout()
        await client.aclose()
        await database.dispose()


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Scan symbols for covered-call candidates")
    parser.add_argument("symbols", nargs="*", help="Symbols to scan; defaults to S&P 500 + sector ETFs")
    parser.add_argument("--delay-ms", type=int, default=settings.scan_delay_ms)
    args = parser.parse_args()
    setup_logging(settings.log_level)
    asyncio.run(_run([s.upper() for s in args.symbols], args.delay_ms))


if __name__ == "__main__":
    main()
