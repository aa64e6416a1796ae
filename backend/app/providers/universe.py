"""Symbol universes for the covered-call scanner."""

from __future__ import annotations

import csv
import io
import logging
from typing import Any, List

import httpx

logger = logging.getLogger(__name__)

SECTOR_ETFS = (
    "XLK",
    "SMH",
    "SOXX",
    "XLF",
    "KBE",
    "XLV",
    "IHI",
    "XLY",
    "XLP",
    "XLE",
    "XOP",
    "XLB",
    "XLI",
    "XLU",
    "XLRE",
    "XLC",
    "SPY",
    "QQQ",
    "DIA",
    "IWM",
)


class UniverseError(RuntimeError):
    """Raised when the constituent list cannot be fetched or parsed."""


def parse_constituents_csv(text: str) -> List[str]:
    """Return the ``Symbol`` column of a constituents CSV, normalised for the broker."""

    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames or "Symbol" not in reader.fieldnames:
        raise UniverseError("Constituents CSV is missing a Symbol column")
    symbols: List[str] = []
    for row in reader:
        symbol = (row.get("Symbol") or "").strip().upper()
        if symbol:
            # Class shares are quoted with a slash (BRK/B)
            symbols.append(symbol.replace(".", "/"))
    return symbols


async def fetch_sp500_symbols(url: str, *, client: Any | None = None, timeout: float = 15.0) -> List[str]:
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=timeout)
    try:
        response = await http.get(url)
    except httpx.HTTPError as exc:
        raise UniverseError(f"Failed to download S&P 500 constituents: {exc}") from exc
    finally:
        if owns_client:
            await http.aclose()
    if response.status_code >= 400:
        raise UniverseError(f"S&P 500 constituents request failed with {response.status_code}")
    symbols = parse_constituents_csv(response.text)
    logger.info("Loaded %d S&P 500 constituents", len(symbols))
    return symbols


__all__ = ["SECTOR_ETFS", "UniverseError", "parse_constituents_csv", "fetch_sp500_symbols"]
