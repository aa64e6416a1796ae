"""Tastytrade REST client used for quotes, option chains and account data."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable, Sequence

import httpx

from app.config import AppSettings, get_settings
from premium_desk.screening import OptionCandidate, QuoteSnapshot

logger = logging.getLogger(__name__)

INDEX_SYMBOLS = frozenset({"SPX", "VIX", "RUT", "NDX", "DJX"})
EXPIRATION_TYPES = frozenset({"Weekly", "Regular"})
MIN_DAYS_TO_EXPIRATION = 3
RATE_LIMIT_WARNING_THRESHOLD = 10
_OCC_STRIKE = re.compile(r"(\d{5})(\d{3})$")


class TastytradeError(RuntimeError):
    """Raised when a Tastytrade call fails."""


class TastytradeAuthError(TastytradeError):
    """Raised when no valid session can be established."""


@dataclass(frozen=True)
class TastytradeSession:
    """An OAuth access token and the wall-clock time it stops being trusted."""

    access_token: str
    expires_at: float

    def is_active(self, now: float) -> bool:
        return bool(self.access_token) and now < self.expires_at


def _to_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _items(payload: Any) -> list[dict[str, Any]]:
    """Pull the ``items`` list out of Tastytrade's ``{"data": {"items": [...]}}`` envelope."""

    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    data = payload.get("data", payload)
    if isinstance(data, dict):
        items = data.get("items")
        if isinstance(items, list):
            return items
    return []


def strike_from_occ_symbol(symbol: str) -> float:
    """Decode the strike encoded in the last eight digits of an OCC option symbol."""

    match = _OCC_STRIKE.search(symbol.strip())
    if not match:
        return 0.0
    return float(f"{match.group(1)}.{match.group(2)}")


def select_expiration(
    chain_items: Sequence[dict[str, Any]],
    *,
    max_days: int,
    min_days: int = MIN_DAYS_TO_EXPIRATION,
) -> dict[str, Any]:
    """Return the first weekly/regular expiration inside ``(min_days, max_days]``."""

    if not chain_items:
        raise TastytradeError("No option chain data received or invalid structure")
    expirations = chain_items[0].get("expirations")
    if not expirations:
        raise TastytradeError("Option chain data missing expirations")
    for expiration in expirations:
        days = expiration.get("days-to-expiration")
        if expiration.get("expiration-type") in EXPIRATION_TYPES and days is not None and min_days < days <= max_days:
            return expiration
    raise TastytradeError("No valid expiration found in option chain")


def select_strike_above(expiration: dict[str, Any], current_price: float) -> dict[str, Any]:
    """Return the first strike with a listed call above ``current_price``."""

    for strike in expiration.get("strikes", []):
        strike_price = _to_float(strike.get("strike-price"))
        if strike.get("call") and strike_price is not None and strike_price > current_price:
            return strike
    raise TastytradeError("No valid strike found above current price")


def _chunks(symbols: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for start in range(0, len(symbols), size):
        yield symbols[start : start + size]


class TastytradeClient:
    """Async Tastytrade client with single-flight session refresh and 401/429 retries."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: Any | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings or get_settings()
        self._base_url = self._settings.tastytrade_base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=self._settings.tastytrade_timeout_seconds)
        self._owns_client = client is None
        self._clock = clock
        self._session: TastytradeSession | None = None
        self._session_lock = asyncio.Lock()

    @property
    def session(self) -> TastytradeSession | None:
        return self._session

    def is_logged_in(self) -> bool:
        return self._session is not None and self._session.is_active(self._clock())

    def invalidate_session(self) -> None:
        self._session = None

    async def ensure_session(self) -> TastytradeSession:
        """Return an active session, refreshing at most once across concurrent callers."""

        session = self._session
        if session is not None and session.is_active(self._clock()):
            return session
        async with self._session_lock:
            session = self._session
            if session is not None and session.is_active(self._clock()):
                return session
            self._session = await self._refresh_session()
            return self._session

    async def _refresh_session(self) -> TastytradeSession:
        settings = self._settings
        if not settings.tastytrade_configured:
            raise TastytradeAuthError(
                "Tastytrade credentials are not configured "
                "(TASTYTRADE_ACCOUNT_NUMBER, TASTYTRADE_CLIENT_SECRET, TASTYTRADE_REFRESH_TOKEN)"
            )
        logger.info("Refreshing Tastytrade session")
        try:
            response = await self._client.request(
                "POST",
                f"{self._base_url}/oauth/token",
                json={
                    "grant_type": "refresh_token",
                    "refresh_token": settings.tastytrade_refresh_token,
                    "client_secret": settings.tastytrade_client_secret,
                },
            )
        except httpx.HTTPError as exc:
            raise TastytradeAuthError(f"Failed to reach Tastytrade: {exc}") from exc
        if response.status_code >= 400:
            raise TastytradeAuthError(f"Tastytrade session refresh failed with {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise TastytradeAuthError("Tastytrade returned an invalid token payload") from exc
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise TastytradeAuthError("Tastytrade token response did not include an access token")
        ttl = float(settings.tastytrade_session_ttl_seconds)
        expires_in = _to_float(payload.get("expires_in"))
        if expires_in is not None:
            ttl = min(ttl, expires_in)
        return TastytradeSession(access_token=token, expires_at=self._clock() + ttl)

    def _backoff_delay(self, attempt: int, headers: Any) -> float:
        delay = self._settings.tastytrade_rate_limit_delay_ms * (2 ** (attempt - 1)) / 1000
        reset = headers.get("x-ratelimit-reset") if headers is not None else None
        reset_value = _to_float(reset)
        if reset_value is not None:
            reset_ms = reset_value * 1000 if reset_value < 100_000_000_000 else reset_value
            now_ms = self._clock() * 1000
            if reset_ms > now_ms:
                delay = (reset_ms - now_ms + 200) / 1000
        return delay

    async def _request(self, method: str, path: str, *, params: dict[str, Any] | None = None) -> Any:
        max_retries = self._settings.tastytrade_max_retries
        url = f"{self._base_url}{path}"
        attempt = 0
        while True:
            attempt += 1
            session = await self.ensure_session()
            try:
                response = await self._client.request(
                    method,
                    url,
                    params=params,
                    headers={"Authorization": f"Bearer {session.access_token}"},
                )
            except httpx.HTTPError as exc:
                raise TastytradeError(f"Failed to reach Tastytrade: {exc}") from exc

            if response.status_code == 401:
                self.invalidate_session()
                if attempt >= max_retries:
                    raise TastytradeAuthError(f"Tastytrade rejected the session for {path}")
                logger.warning("Received 401 for %s; refreshing session (attempt %d)", path, attempt)
                continue

            if response.status_code == 429:
                if attempt >= max_retries:
                    raise TastytradeError(f"Rate limit exceeded for {path}")
                delay = self._backoff_delay(attempt, response.headers)
                logger.warning("Rate limited on %s; retrying in %.2fs", path, delay)
                await asyncio.sleep(delay)
                continue

            if response.status_code >= 400:
                detail: Any
                try:
                    payload = response.json()
                    detail = payload.get("error", payload) if isinstance(payload, dict) else payload
                except ValueError:
                    detail = response.text
                raise TastytradeError(f"Tastytrade error {response.status_code} for {path}: {detail}")

            remaining = _to_float(response.headers.get("x-ratelimit-remaining"))
            if remaining is not None and remaining < RATE_LIMIT_WARNING_THRESHOLD:
                logger.warning("Rate limit warning: %d requests remaining", int(remaining))
            try:
                return response.json()
            except ValueError as exc:
                raise TastytradeError(f"Tastytrade returned invalid JSON for {path}") from exc

    async def get_quotes(self, symbols: Sequence[str]) -> list[QuoteSnapshot]:
        quotes: list[QuoteSnapshot] = []
        for chunk in _chunks(list(symbols), self._settings.quote_chunk_size):
            params: dict[str, str] = {}
            equities = [s for s in chunk if s not in INDEX_SYMBOLS]
            indices = [s for s in chunk if s in INDEX_SYMBOLS]
            if equities:
                params["equity"] = ",".join(equities)
            if indices:
                params["index"] = ",".join(indices)
            payload = await self._request("GET", "/market-data/by-type", params=params)
            for item in _items(payload):
                quotes.append(
                    QuoteSnapshot(
                        symbol=str(item.get("symbol", "")),
                        last=_to_float(item.get("last")),
                        bid=_to_float(item.get("bid")),
                        ask=_to_float(item.get("ask")),
                        volume=_to_float(item.get("volume")),
                    )
                )
            logger.debug("Received quotes for %d symbols", len(chunk))
        return quotes

    async def get_quote(self, symbol: str) -> QuoteSnapshot:
        quotes = await self.get_quotes([symbol])
        if not quotes:
            raise TastytradeError(f"No quote returned for {symbol}")
        return quotes[0]

    async def get_next_option(self, symbol: str, quote: QuoteSnapshot) -> OptionCandidate:
        """Find the nearest short-dated call above the current mid and quote it."""

        current_price = quote.mid
        if current_price is None:
            raise TastytradeError(f"Quote for {symbol} has no bid/ask")
        chain = await self._request("GET", f"/option-chains/{symbol}/nested")
        expiration = select_expiration(_items(chain), max_days=self._settings.days_to_expiration)
        strike = select_strike_above(expiration, current_price)
        option_symbol = str(strike["call"])
        payload = await self._request("GET", "/market-data/by-type", params={"equity-option": option_symbol})
        items = _items(payload)
        if not items:
            raise TastytradeError(f"No option quote data received for {option_symbol}")
        option_quote = items[0]
        return OptionCandidate(
            symbol=option_symbol,
            underlying=symbol,
            strike_price=float(strike["strike-price"]),
            expiration_date=date.fromisoformat(expiration["expiration-date"]),
            days_to_expiration=int(expiration["days-to-expiration"]),
            bid=_to_float(option_quote.get("bid")),
            ask=_to_float(option_quote.get("ask")),
            last=_to_float(option_quote.get("last")),
        )

    async def get_account_history(self, start: date, end: date) -> list[dict[str, Any]]:
        """Return all account transactions between ``start`` and ``end``, oldest first."""

        path = f"/accounts/{self._settings.tastytrade_account_number}/transactions"
        params: dict[str, Any] = {
            "sort": "Asc",
            "start-date": start.isoformat(),
            "end-date": end.isoformat(),
        }
        transactions: list[dict[str, Any]] = []
        while True:
            payload = await self._request("GET", path, params=dict(params))
            transactions.extend(_items(payload))
            pagination = payload.get("pagination") if isinstance(payload, dict) else None
            if not pagination:
                break
            offset = int(pagination.get("page-offset", 0))
            total_pages = int(pagination.get("total-pages", 0))
            if offset + 1 >= total_pages:
                break
            params["page-offset"] = offset + 1
        logger.info("Fetched %d account transactions from %s to %s", len(transactions), start, end)
        return transactions

    async def get_positions(self) -> list[dict[str, Any]]:
        """Return equity positions that are paired with an option on the same underlying."""

        path = f"/accounts/{self._settings.tastytrade_account_number}/positions"
        payload = await self._request("GET", path)
        by_symbol: dict[str, dict[str, Any]] = {}
        for item in _items(payload):
            underlying = item.get("underlying-symbol")
            if not underlying:
                continue
            slot = by_symbol.setdefault(underlying, {"equity": None, "option": None})
            if item.get("instrument-type") == "Equity":
                slot["equity"] = item
            elif item.get("instrument-type") == "Equity Option":
                slot["option"] = item

        positions: list[dict[str, Any]] = []
        for slot in by_symbol.values():
            equity, option = slot["equity"], slot["option"]
            if not equity or not option:
                continue
            positions.append(
                {
                    **equity,
                    "option-symbol": option.get("symbol"),
                    "option-price": strike_from_occ_symbol(str(option.get("symbol", ""))),
                }
            )
        return positions

    async def logout(self) -> None:
        """Delete the remote session if one is held; the local session is always cleared."""

        session = self._session
        self.invalidate_session()
        if session is None:
            return
        try:
            response = await self._client.request(
                "DELETE",
                f"{self._base_url}/sessions",
                headers={"Authorization": f"Bearer {session.access_token}"},
            )
        except httpx.HTTPError as exc:
            logger.warning("Tastytrade logout failed: %s", exc)
            return
        if response.status_code >= 400:
            logger.warning("Tastytrade logout returned %s", response.status_code)
        else:
            logger.info("Tastytrade session closed")

    async def aclose(self) -> None:
        self.invalidate_session()
        if self._owns_client:
            await self._client.aclose()


__all__ = [
    "TastytradeClient",
    "TastytradeError",
    "TastytradeAuthError",
    "TastytradeSession",
    "INDEX_SYMBOLS",
    "select_expiration",
    "select_strike_above",
    "strike_from_occ_symbol",
]
