"""Candle feed: chart history from the market data proxy, with a synthetic
placeholder series whenever the provider fails or returns a payload whose
shape is not recognized.

Placeholder data is flagged so that the caller can label it as such; it is
never mistaken for provider data.
"""

import logging
import random
import time as time_module
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx

from app.clients import MarketDataClient
from core.models import Candle

logger = logging.getLogger(__name__)

DAY_SECONDS = 86400
DEFAULT_BASE_PRICE = 5000.0
VOLATILITY = 0.025  # Fraction of price

BASE_PRICES: dict[str, float] = {
    "BBCA": 9800,
    "BBRI": 4600,
    "TLKM": 3400,
    "ASII": 5200,
    "BMRI": 6300,
    "UNVR": 3150,
    "GOTO": 72,
    "BREN": 6900,
    "ADRO": 2700,
    "ANTM": 1530,
    "PGAS": 1350,
    "INDF": 6700,
}


class UnrecognizedPayloadError(ValueError):
    """Provider payload does not contain recognizable OHLC candles."""


# =============================================================================
# Payload parsing
# =============================================================================

def _parse_time(item: dict) -> int:
    raw = item.get("time")
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return int(raw)

    text = raw or item.get("date") or item.get("timestamp")
    if not isinstance(text, str):
        raise UnrecognizedPayloadError(f"Candle has no usable time: {item!r}")
    try:
        dt = datetime.fromisoformat(text)
    except ValueError as e:
        raise UnrecognizedPayloadError(f"Unparsable candle time {text!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def _field(item: dict, name: str, short: str | None = None) -> float:
    value = item.get(name)
    if not value and short is not None:
        value = item.get(short)
    if value is None:
        raise UnrecognizedPayloadError(f"Candle is missing '{name}': {item!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise UnrecognizedPayloadError(f"Non-numeric '{name}' in candle: {item!r}") from e


def parse_candles(payload: Any) -> list[Candle]:
    """
    Convert a provider payload into candles sorted by time.

    Recognized shapes:
    - a non-empty list of objects with ``open``/``high``/``low``/``close``
    - ``{"data": [...]}`` whose objects use full or one-letter field names

    Candles sharing a time keep the last occurrence.

    Raises:
        UnrecognizedPayloadError: If the payload matches neither shape.
    """
    if isinstance(payload, list) and payload and isinstance(payload[0], dict) and "open" in payload[0]:
        items, short = payload, False
    elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
        items, short = payload["data"], True
    else:
        raise UnrecognizedPayloadError("Unexpected data format")

    by_time: dict[int, Candle] = {}
    for item in items:
        if not isinstance(item, dict):
            raise UnrecognizedPayloadError(f"Candle is not an object: {item!r}")
        volume = item.get("volume", item.get("v") if short else None)
        candle = Candle(
            time=_parse_time(item),
            open=_field(item, "open", "o" if short else None),
            high=_field(item, "high", "h" if short else None),
            low=_field(item, "low", "l" if short else None),
            close=_field(item, "close", "c" if short else None),
            volume=float(volume) if volume is not None else None,
        )
        by_time[candle.time] = candle

    return [by_time[t] for t in sorted(by_time)]


# =============================================================================
# Synthetic placeholder data
# =============================================================================

def generate_synthetic_candles(
    symbol: str,
    count: int = 200,
    now: int | None = None,
    rng: random.Random | None = None,
) -> list[Candle]:
    """
    Generate a random-walk daily series ending at ``now``.

    The walk starts at the symbol's base price (5000 when unknown) and each
    bar moves by up to 2.5% of the previous close.

    Args:
        symbol: Bare ticker used to pick the base price
        count: Number of bars before the final one (``count + 1`` in total)
        now: Time of the last bar in unix seconds (default: current time)
        rng: Random source (default: a fresh unseeded ``random.Random``)
    """
    rng = rng or random.Random()
    now = int(time_module.time()) if now is None else now
    price = BASE_PRICES.get(symbol.split(":")[-1], DEFAULT_BASE_PRICE)

    candles = []
    for i in range(count, -1, -1):
        volatility = price * VOLATILITY
        open_ = price + (rng.random() - 0.5) * volatility
        close = open_ + (rng.random() - 0.5) * volatility
        high = max(open_, close) + rng.random() * volatility * 0.5
        low = min(open_, close) - rng.random() * volatility * 0.5
        candles.append(
            Candle(time=now - i * DAY_SECONDS, open=open_, high=high, low=low, close=close)
        )
        price = close

    return candles


# =============================================================================
# Feed
# =============================================================================

@dataclass
class CandleFeedResult:
    """Candles for one chart request.

    Attributes:
        candles: Candles sorted ascending by time.
        is_placeholder: True when the candles are synthetic.
    """

    candles: list[Candle] = field(default_factory=list)
    is_placeholder: bool = False


class CandleFeed:
    """Loads chart history, substituting placeholder data on any failure."""

    def __init__(
        self,
        client: MarketDataClient,
        fallback_bar_count: int = 200,
        rng: random.Random | None = None,
    ):
        self.client = client
        self.fallback_bar_count = fallback_bar_count
        self._rng = rng

    async def load(self, symbol: str, timeframe: str = "D", range_: int = 300) -> CandleFeedResult:
        """Fetch and parse chart history for a symbol."""
        try:
            payload = await self.client.get_chart(symbol, timeframe, range_)
            candles = parse_candles(payload)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Using placeholder data for %s (%s): %s", symbol, timeframe, e)
            return CandleFeedResult(
                candles=generate_synthetic_candles(
                    symbol, self.fallback_bar_count, rng=self._rng
                ),
                is_placeholder=True,
            )

        logger.info("Loaded %d candles for %s (%s)", len(candles), symbol, timeframe)
        return CandleFeedResult(candles=candles, is_placeholder=False)
