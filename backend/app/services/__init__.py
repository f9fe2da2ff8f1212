"""Application services."""

from app.services.candle_feed import (
    BASE_PRICES,
    CandleFeed,
    CandleFeedResult,
    UnrecognizedPayloadError,
    generate_synthetic_candles,
    parse_candles,
)

__all__ = [
    "BASE_PRICES",
    "CandleFeed",
    "CandleFeedResult",
    "UnrecognizedPayloadError",
    "generate_synthetic_candles",
    "parse_candles",
]
