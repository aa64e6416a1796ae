"""Static threshold checks for covered-call / short-option candidates."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional


class ScreeningStatus(str, enum.Enum):
    LOW_STOCK_PRICE = "LOW_STOCK_PRICE"
    HIGH_SPREAD = "HIGH_SPREAD"
    EXPIRATION_TOO_FAR = "EXPIRATION_TOO_FAR"
    LOW_MID_PERCENT = "LOW_MID_PERCENT"
    READY = "READY"


@dataclass(frozen=True)
class ScreeningThresholds:
    min_stock_price: float = 30.0
    max_stock_spread: float = 15.0
    min_mid_percent: float = 3.0
    days_to_expiration: int = 10


@dataclass(frozen=True)
class QuoteSnapshot:
    symbol: str
    last: Optional[float] = None
    bid: Optional[float] = None
    ask: Optional[float] = None
    volume: Optional[float] = None

    @property
    def mid(self) -> Optional[float]:
        if self.bid is None or self.ask is None:
            return None
        return (self.bid + self.ask) / 2

    @property
    def spread(self) -> Optional[float]:
        if not self.bid or not self.ask:
            return None
        return self.ask - self.bid


@dataclass(frozen=True)
class OptionCandidate:
    """The next qualifying call contract for an underlying."""

    symbol: str
    underlying: str
    strike_price: float
    expiration_date: date
    days_to_expiration: int
    bid: Optional[float] = None
    ask: Optional[float] = None
    last: Optional[float] = None

    @property
    def mid(self) -> Optional[float]:
        if not self.bid or not self.ask:
            return None
        return (self.bid + self.ask) / 2

    @property
    def mid_percent(self) -> Optional[float]:
        mid = self.mid
        if not mid or not self.strike_price:
            return None
        return mid / self.strike_price * 100


@dataclass
class ScreeningResult:
    symbol: str
    status: ScreeningStatus
    current_price: Optional[float] = None
    stock_bid: Optional[float] = None
    stock_ask: Optional[float] = None
    stock_spread: Optional[float] = None
    option_symbol: Optional[str] = None
    option_strike_price: Optional[float] = None
    option_bid: Optional[float] = None
    option_ask: Optional[float] = None
    option_mid_price: Optional[float] = None
    option_mid_percent: Optional[float] = None
    option_expiration_date: Optional[date] = None
    notes: List[str] = field(default_factory=list)


def evaluate_candidate(
    quote: QuoteSnapshot,
    option: Optional[OptionCandidate],
    thresholds: ScreeningThresholds,
    *,
    as_of: date,
) -> ScreeningResult:
    """Classify a symbol from its live quote and next call contract."""

    current_price = quote.last if quote.last else quote.mid
    result = ScreeningResult(
        symbol=quote.symbol,
        status=ScreeningStatus.READY,
        current_price=current_price,
        stock_bid=quote.bid,
        stock_ask=quote.ask,
        stock_spread=quote.spread,
    )
    if option is not None:
        result.option_symbol = option.symbol
        result.option_strike_price = option.strike_price
        result.option_bid = option.bid
        result.option_ask = option.ask
        result.option_mid_price = option.mid
        result.option_mid_percent = option.mid_percent
        result.option_expiration_date = option.expiration_date

    if current_price is None or current_price < thresholds.min_stock_price:
        result.status = ScreeningStatus.LOW_STOCK_PRICE
        result.notes.append(f"Stock price ${current_price} below minimum ${thresholds.min_stock_price}")
        return result

    if result.stock_spread is not None and result.stock_spread > thresholds.max_stock_spread:
        result.status = ScreeningStatus.HIGH_SPREAD
        result.notes.append(
            f"Stock spread ${result.stock_spread:.2f} exceeds maximum ${thresholds.max_stock_spread}"
        )
        return result

    latest_expiration = as_of + timedelta(days=thresholds.days_to_expiration)
    if option is None or option.expiration_date > latest_expiration:
        result.status = ScreeningStatus.EXPIRATION_TOO_FAR
        result.notes.append("Option expiration beyond target window")
        return result

    mid_percent = result.option_mid_percent
    if mid_percent is None or mid_percent < thresholds.min_mid_percent:
        result.status = ScreeningStatus.LOW_MID_PERCENT
        if mid_percent is not None:
            result.notes.append(
                f"Mid price {mid_percent:.2f}% of strike below minimum {thresholds.min_mid_percent}%"
            )
        return result

    result.notes.append(
        f"Mid price {mid_percent:.2f}% of strike exceeds minimum {thresholds.min_mid_percent}%"
    )
    return result


__all__ = [
    "ScreeningStatus",
    "ScreeningThresholds",
    "QuoteSnapshot",
    "OptionCandidate",
    "ScreeningResult",
    "evaluate_candidate",
]
