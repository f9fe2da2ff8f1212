"""Technical indicators (pure math, no I/O)."""

from core.indicators.indicators import (
    sma,
    ema,
    ema_continuous,
    rsi,
    stdev,
    macd,
    bollinger_bands,
    highest,
    lowest,
    highest_bars,
    lowest_bars,
    alma,
    IndicatorCalculator,
    DEFAULT_COLORS,
)

__all__ = [
    "sma",
    "ema",
    "ema_continuous",
    "rsi",
    "stdev",
    "macd",
    "bollinger_bands",
    "highest",
    "lowest",
    "highest_bars",
    "lowest_bars",
    "alma",
    "IndicatorCalculator",
    "DEFAULT_COLORS",
]
