"""Covered-call scanner: quote each symbol, find its next call and classify it."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import AppSettings
from app.models import AnalysisResult
from app.providers.tastytrade import TastytradeClient, TastytradeError
from app.providers.universe import SECTOR_ETFS, UniverseError, fetch_sp500_symbols
from premium_desk.screening import (
    QuoteSnapshot,
    ScreeningResult,
    ScreeningStatus,
    ScreeningThresholds,
    evaluate_candidate,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Dict[str, Any]], Awaitable[None]]

# Rejected on the stock quote alone; no option chain is fetched for these.
_QUOTE_REJECTIONS = frozenset({ScreeningStatus.LOW_STOCK_PRICE, ScreeningStatus.HIGH_SPREAD})


async def default_universe(settings: AppSettings, *, client: Any | None = None) -> List[str]:
    """S&P 500 constituents followed by the sector ETFs, without duplicates."""

    try:
        constituents = await fetch_sp500_symbols(
            settings.sp500_constituents_url, client=client, timeout=settings.tastytrade_timeout_seconds
        )
    except UniverseError:
        logger.exception("Falling back to sector ETFs only")
        constituents = []
    return list(dict.fromkeys([*constituents, *SECTOR_ETFS]))


async def save_result(session: AsyncSession, result: ScreeningResult) -> AnalysisResult:
    existing = await session.execute(select(AnalysisResult).where(AnalysisResult.symbol == result.symbol))
    row = existing.scalar_one_or_none()
    if row is None:
        row = AnalysisResult(symbol=result.symbol)
        session.add(row)
    row.current_price = result.current_price
    row.stock_bid = result.stock_bid
    row.stock_ask = result.stock_ask
    row.stock_spread = result.stock_spread
    row.option_symbol = result.option_symbol
    row.option_strike_price = result.option_strike_price
    row.option_bid = result.option_bid
    row.option_ask = result.option_ask
    row.option_mid_price = result.option_mid_price
    row.option_mid_percent = result.option_mid_percent
    row.option_expiration_date = result.option_expiration_date
    row.status = result.status.value
    row.notes = "; ".join(result.notes) or None
    row.analyzed_at = datetime.utcnow()
    await session.commit()
    return row


async def list_results(session: AsyncSession) -> List[AnalysisResult]:
    result = await session.execute(select(AnalysisResult).order_by(AnalysisResult.symbol))
    return list(result.scalars().all())


async def _screen_symbol(
    broker: TastytradeClient,
    quote: QuoteSnapshot,
    thresholds: ScreeningThresholds,
    as_of: date,
) -> ScreeningResult:
    preliminary = evaluate_candidate(quote, None, thresholds, as_of=as_of)
    if preliminary.status in _QUOTE_REJECTIONS:
        return preliminary
    option = await broker.get_next_option(quote.symbol, quote)
    return evaluate_candidate(quote, option, thresholds, as_of=as_of)


async def scan_symbols(
    session: AsyncSession,
    broker: TastytradeClient,
    symbols: Sequence[str],
    *,
    thresholds: ScreeningThresholds,
    delay_ms: int = 0,
    as_of: date | None = None,
    on_progress: ProgressCallback | None = None,
) -> List[ScreeningResult]:
    """Scan ``symbols`` sequentially, persisting one ``AnalysisResult`` per symbol.

    A symbol whose quote or option chain cannot be fetched is logged and
    skipped; the scan itself only fails when the quote batch cannot be loaded.
    """

    as_of = as_of or datetime.now(timezone.utc).date()
    total = len(symbols)

    async def emit(event: Dict[str, Any]) -> None:
        if on_progress is not None:
            await on_progress(event)

    await emit({"type": "start", "total": total, "message": f"Scanning {total} symbols"})
    quotes = {quote.symbol: quote for quote in await broker.get_quotes(symbols)}

    results: List[ScreeningResult] = []
    for index, symbol in enumerate(symbols, start=1):
        quote = quotes.get(symbol)
        if quote is None:
            logger.warning("No quote returned for %s; skipping", symbol)
        else:
            try:
                result = await _screen_symbol(broker, quote, thresholds, as_of)
            except TastytradeError as exc:
                logger.warning("Skipping %s: %s", symbol, exc)
            else:
                await save_result(session, result)
                results.append(result)
        await emit({"type": "progress", "current": index, "total": total, "symbol": symbol})
        if delay_ms and index < total:
            await asyncio.sleep(delay_ms / 1000)

    ready = sum(1 for result in results if result.status is ScreeningStatus.READY)
    await emit(
        {
            "type": "complete",
            "current": total,
            "total": total,
            "message": f"Analyzed {len(results)} symbols, {ready} ready",
        }
    )
    logger.info("Scan finished: %d analyzed, %d ready, %d skipped", len(results), ready, total - len(results))
    return results


__all__ = ["ProgressCallback", "default_universe", "save_result", "list_results", "scan_symbols"]
