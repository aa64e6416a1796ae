"""Persistence helpers for the synced transaction ledger and closed episodes."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Iterable, Mapping, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ClosedPosition, TransactionHistory
from app.providers.tastytrade import TastytradeClient
from premium_desk import (
    MalformedTransactionError,
    PositionEpisode,
    TransactionRecord,
    parse_ledger,
    parse_transaction,
)

logger = logging.getLogger(__name__)


def _row_from_record(record: TransactionRecord) -> TransactionHistory:
    return TransactionHistory(
        transaction_id=record.id,
        executed_at=record.executed_at,
        transaction_type=record.transaction_type,
        instrument_type=record.instrument_type.value,
        action=record.action.value,
        symbol=record.symbol or None,
        underlying_symbol=record.underlying or None,
        quantity=record.quantity,
        price=record.price,
        value=record.value,
        value_effect=record.value_effect.value,
        description=record.description,
    )


def row_to_mapping(row: TransactionHistory) -> dict[str, Any]:
    """Render a stored transaction in the brokerage's hyphenated shape."""

    return {
        "id": row.transaction_id,
        "executed-at": row.executed_at,
        "transaction-type": row.transaction_type,
        "instrument-type": row.instrument_type,
        "action": row.action,
        "symbol": row.symbol,
        "underlying-symbol": row.underlying_symbol,
        "quantity": row.quantity,
        "price": row.price,
        "value": row.value,
        "value-effect": row.value_effect,
        "description": row.description,
    }


async def store_transactions(session: AsyncSession, raw_transactions: Iterable[Mapping[str, Any]]) -> int:
    """Upsert brokerage transactions by id; rows that fail normalization are skipped."""

    stored = 0
    for raw in raw_transactions:
        try:
            record = parse_transaction(raw)
        except MalformedTransactionError as exc:
            logger.warning("Skipping malformed transaction %s: %s", exc.transaction_id or "<unknown>", exc)
            continue
        await session.merge(_row_from_record(record))
        stored += 1
    await session.commit()
    return stored


async def sync_account_history(
    session: AsyncSession,
    client: TastytradeClient,
    *,
    start: date,
    end: date | None = None,
) -> int:
    """Pull account history from the broker and persist it."""

    end = end or datetime.now(timezone.utc).date()
    raw_transactions = await client.get_account_history(start, end)
    stored = await store_transactions(session, raw_transactions)
    logger.info("Synced %d of %d transactions (%s to %s)", stored, len(raw_transactions), start, end)
    return stored


async def list_account_history(
    session: AsyncSession,
    *,
    start: date | None = None,
    end: date | None = None,
) -> list[TransactionHistory]:
    stmt = select(TransactionHistory).order_by(TransactionHistory.executed_at)
    if start is not None:
        stmt = stmt.where(TransactionHistory.executed_at >= datetime.combine(start, time.min, tzinfo=timezone.utc))
    if end is not None:
        stmt = stmt.where(TransactionHistory.executed_at <= datetime.combine(end, time.max, tzinfo=timezone.utc))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def load_ledger(session: AsyncSession) -> list[TransactionRecord]:
    """Load the full stored ledger as normalized records, oldest first."""

    rows = await list_account_history(session)
    return parse_ledger([row_to_mapping(row) for row in rows])


def _apply_episode(position: ClosedPosition, episode: PositionEpisode) -> None:
    position.symbol = episode.symbol
    position.total_shares = episode.total_shares
    position.total_cost = episode.total_cost
    position.total_proceeds = episode.total_proceeds
    position.realized_pl = episode.realized_pl
    position.total_option_premium = episode.total_option_premium
    position.total_return = episode.total_return
    position.return_percentage = episode.return_percentage
    position.first_transaction_date = episode.first_transaction_date
    position.last_transaction_date = episode.last_transaction_date
    position.total_option_contracts = int(episode.total_option_contracts)
    position.total_option_transactions = episode.total_option_transactions
    position.equity_transactions = episode.equity_transactions
    position.avg_cost_basis = episode.avg_cost_basis
    position.days_held = episode.days_held


async def record_closed_positions(session: AsyncSession, episodes: Sequence[PositionEpisode]) -> int:
    """Upsert closed episodes by grouping key and link their transactions."""

    recorded = 0
    for episode in episodes:
        if episode.is_open:
            continue
        result = await session.execute(
            select(ClosedPosition).where(ClosedPosition.grouping_key == episode.grouping_key)
        )
        position = result.scalar_one_or_none()
        if position is None:
            position = ClosedPosition(grouping_key=episode.grouping_key)
            session.add(position)
        _apply_episode(position, episode)
        await session.flush()

        transaction_ids = [tx.id for tx in episode.transactions]
        if transaction_ids:
            await session.execute(
                update(TransactionHistory)
                .where(TransactionHistory.transaction_id.in_(transaction_ids))
                .values(closed_position_id=position.id)
            )
        recorded += 1
    await session.commit()
    if recorded:
        logger.info("Recorded %d closed position episodes", recorded)
    return recorded


__all__ = [
    "row_to_mapping",
    "store_transactions",
    "sync_account_history",
    "list_account_history",
    "load_ledger",
    "record_closed_positions",
]
