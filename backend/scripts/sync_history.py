"""Sync Tastytrade account history into the local ledger and print the episodes."""

from __future__ import annotations

import argparse
import asyncio
from datetime import date

from app.config import get_settings
from app.core.logging import setup_logging
from app.db.init import init_database
from app.db.session import Database
from app.providers.tastytrade import TastytradeClient
from app.services.ledger import load_ledger, record_closed_positions, sync_account_history
from premium_desk import aggregate_positions


async def _run(start: date, end: date | None) -> None:
    settings = get_settings()
    database = Database(settings.database_url)
    client = TastytradeClient(settings)
    try:
        await init_database(database)
        async with database.session() as session:
            synced = await sync_account_history(session, client, start=start, end=end)
            episodes = aggregate_positions(await load_ledger(session))
            recorded = await record_closed_positions(session, episodes)
        print(f"Synced {synced} transactions; {len(episodes)} episodes ({recorded} closed)")
        for episode in episodes:
            state = "open" if episode.is_open else "closed"
            print(
                f"{episode.symbol:<6} {state:<6} {episode.first_transaction_date.date()} "
                f"premium={episode.total_option_premium:.2f} return={episode.total_return:.2f} "
                f"({episode.return_percentage:.2f}%)"
            )
    finally:
        await client.logout()
        await client.aclose()
        await database.dispose()


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Sync account history and aggregate position episodes")
    parser.add_argument("--start", type=date.fromisoformat, default=settings.account_history_start)
    parser.add_argument("--end", type=date.fromisoformat, default=None)
    args = parser.parse_args()
    setup_logging(settings.log_level)
    asyncio.run(_run(args.start, args.end))


if __name__ == "__main__":
    main()
