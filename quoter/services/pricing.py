from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from quoter.config import settings
from quoter.core.app_config import StrategyConfig
from quoter.core.errors import ApiError, UnexpectedFormat
from quoter.services.field_extractor import extract, has_key


def bps(x: float) -> float:
    return x / 10_000.0

def spread_bps(bid: Optional[float], ask: Optional[float]) -> float:
    if bid is None or ask is None or bid <= 0 or ask <= 0:
        return 999999.0
    mid = (bid + ask) / 2.0
    return ((ask - bid) / mid) * 10_000.0


@dataclass(frozen=True)
class MarketSnapshot:
    last_price: float
    day_low: Optional[float] = None
    day_high: Optional[float] = None

    @property
    def range_bps(self) -> Optional[float]:
        if self.day_low is None or self.day_high is None:
            return None
        return spread_bps(self.day_low, self.day_high)


@dataclass(frozen=True)
class QuoteResult:
    mid_price: float
    our_bid: float
    our_ask: float
    spread_dollars: float
    profit_per_round_trip: float


def _parse_float(text: Optional[str]) -> Optional[float]:
    if text is None:
        return None
    try:
        value = float(text.strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def _parse_level(text: Optional[str]) -> Optional[float]:
    # 0 or negative means "unknown", never "price of zero".
    value = _parse_float(text)
    if value is None or value <= 0:
        return None
    return value


def is_api_error(raw_text: str) -> bool:
    return any(has_key(raw_text, marker) for marker in settings.API_ERROR_MARKERS)


def build_snapshot(raw_text: str) -> MarketSnapshot:
    """
    Parse a GLOBAL_QUOTE body into a MarketSnapshot.
    Raises ApiError when the body is an error/rate-limit notice and
    UnexpectedFormat when the price is missing or unusable for any other reason.
    Low/high degrade to None independently and never raise.
    """
    price_text = extract(raw_text, settings.PRICE_FIELD)
    price = _parse_float(price_text)
    if price is None or price <= 0:
        if is_api_error(raw_text):
            raise ApiError("API error or rate-limit notice", raw_text)
        if price_text is None:
            raise UnexpectedFormat(f"missing {settings.PRICE_FIELD!r}", raw_text)
        raise UnexpectedFormat(f"unparseable price {price_text!r}", raw_text)

    return MarketSnapshot(
        last_price=price,
        day_low=_parse_level(extract(raw_text, settings.LOW_FIELD)),
        day_high=_parse_level(extract(raw_text, settings.HIGH_FIELD)),
    )


def quote_around(mid: float, spread_bps_each_side: float, share_size: int) -> Optional[QuoteResult]:
    """
    our_bid = mid * (1 - s), our_ask = mid * (1 + s), s = spread_bps / 10_000
    profit per round trip = (our_ask - our_bid) * share_size
    No rounding here; display rounds.
    """
    if not mid > 0:
        return None
    s = bps(spread_bps_each_side)
    our_bid = mid * (1.0 - s)
    our_ask = mid * (1.0 + s)
    spread_dollars = our_ask - our_bid
    return QuoteResult(
        mid_price=mid,
        our_bid=our_bid,
        our_ask=our_ask,
        spread_dollars=spread_dollars,
        profit_per_round_trip=spread_dollars * share_size,
    )


def derive_quote(snapshot: MarketSnapshot, config: StrategyConfig) -> Optional[QuoteResult]:
    return quote_around(snapshot.last_price, config.spread_bps, config.share_size)
