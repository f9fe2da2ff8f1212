"""Technical indicators for chart overlays.

All functions take a close-price sequence aligned by index to candle times
and return a list of the same length. Positions where the indicator is not
yet defined hold ``None``; callers drop them when building line series.

Two EMA variants exist and are intentionally not unified:

- ``ema``: windowed, undefined before ``period - 1`` and seeded with the SMA
  of the first ``period`` values. Used by SMA/EMA/MACD script lines.
- ``ema_continuous``: defined everywhere, seeded with the first value. Used
  by the linear regression engine.
"""

import logging
import math
from typing import Sequence

import numpy as np

from core.models.candle import CandleHistory
from core.models.series import (
    IndicatorDescriptor,
    IndicatorKind,
    IndicatorResult,
    LineSeries,
    ResultKind,
    SeriesPoint,
)

logger = logging.getLogger(__name__)

DEFAULT_COLORS = [
    "#2196F3",
    "#FF9800",
    "#26A69A",
    "#EF5350",
    "#AB47BC",
    "#FFEB3B",
    "#00BCD4",
    "#E040FB",
]

MACD_COLOR = "#2196F3"
MACD_SIGNAL_COLOR = "#FF9800"
BB_MIDDLE_COLOR = "#FF9800"
BB_BAND_COLOR = "rgba(255, 152, 0, 0.5)"
DASHED = 2


def _to_optional(arr: np.ndarray) -> list[float | None]:
    """Convert a NaN-padded array into a list with None placeholders."""
    return [None if np.isnan(v) else float(v) for v in arr]


# =============================================================================
# Moving averages
# =============================================================================

def sma(values: Sequence[float], period: int) -> list[float | None]:
    """
    Calculate Simple Moving Average.

    Args:
        values: Sequence of price values
        period: SMA period

    Returns:
        List of SMA values (None before index period - 1)
    """
    if period < 1 or len(values) < period:
        return [None] * len(values)

    arr = np.asarray(values, dtype=np.float64)
    result = np.full_like(arr, np.nan)

    for i in range(period - 1, len(arr)):
        result[i] = np.mean(arr[i - period + 1 : i + 1])

    return _to_optional(result)


def ema(values: Sequence[float], period: int) -> list[float | None]:
    """
    Calculate windowed Exponential Moving Average.

    Seeded at index ``period - 1`` with the SMA of the first ``period``
    values, then ``v[i] = (x[i] - v[i-1]) * k + v[i-1]`` with
    ``k = 2 / (period + 1)``.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values (None before index period - 1)
    """
    if period < 1 or len(values) < period:
        return [None] * len(values)

    arr = np.asarray(values, dtype=np.float64)
    multiplier = 2.0 / (period + 1)

    result = np.full_like(arr, np.nan)
    result[period - 1] = np.mean(arr[:period])

    for i in range(period, len(arr)):
        prev = result[i - 1]
        result[i] = (arr[i] - prev) * multiplier + prev

    return _to_optional(result)


def ema_continuous(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate EMA defined at every index.

    ``v[0] = x[0]`` and ``v[i] = x[i] * k + v[i-1] * (1 - k)``.
    """
    if len(values) == 0:
        return []

    arr = np.asarray(values, dtype=np.float64)
    k = 2.0 / (period + 1)

    result = np.empty_like(arr)
    result[0] = arr[0]
    for i in range(1, len(arr)):
        result[i] = arr[i] * k + result[i - 1] * (1 - k)

    return [float(v) for v in result]


# =============================================================================
# Oscillators and bands
# =============================================================================

def rsi(values: Sequence[float], period: int) -> list[float | None]:
    """
    Calculate Relative Strength Index.

    The first value at index ``period`` averages the first ``period`` gains
    and losses. For later indices the previous average is a plain mean over
    every delta before the current one, not the previous smoothed value:

        prev_avg = mean(gains[0 : i - 1])
        avg = (prev_avg * (period - 1) + gains[i - 1]) / period

    which differs from Wilder's smoothing. Chart output depends on this
    exact behavior.

    Args:
        values: Sequence of close prices
        period: RSI period

    Returns:
        List of RSI values (None for the first ``period`` indices)
    """
    n = len(values)
    if period < 1 or n <= period:
        return [None] * n

    arr = np.asarray(values, dtype=np.float64)
    deltas = np.diff(arr)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    result = np.full_like(arr, np.nan)

    for i in range(period, n):
        if i == period:
            avg_gain = np.mean(gains[:period])
            avg_loss = np.mean(losses[:period])
        else:
            prev_avg_gain = np.mean(gains[: i - 1])
            prev_avg_loss = np.mean(losses[: i - 1])
            avg_gain = (prev_avg_gain * (period - 1) + gains[i - 1]) / period
            avg_loss = (prev_avg_loss * (period - 1) + losses[i - 1]) / period

        rs = 100.0 if avg_loss == 0 else avg_gain / avg_loss
        result[i] = 100.0 - 100.0 / (1.0 + rs)

    return _to_optional(result)


def stdev(values: Sequence[float], period: int) -> list[float | None]:
    """Calculate rolling population standard deviation."""
    if period < 1 or len(values) < period:
        return [None] * len(values)

    arr = np.asarray(values, dtype=np.float64)
    result = np.full_like(arr, np.nan)

    for i in range(period - 1, len(arr)):
        window = arr[i - period + 1 : i + 1]
        mean = np.mean(window)
        result[i] = math.sqrt(np.sum((window - mean) ** 2) / period)

    return _to_optional(result)


def macd(
    values: Sequence[float],
    fast: int,
    slow: int,
    signal: int,
) -> tuple[list[float | None], list[float | None]]:
    """
    Calculate MACD and its signal line.

    The signal line is the windowed EMA of the MACD values with the undefined
    head removed, shifted back so that its first entry lines up with the
    first defined MACD value.

    Args:
        values: Sequence of close prices
        fast: Fast EMA period
        slow: Slow EMA period
        signal: Signal EMA period

    Returns:
        Tuple of (macd_line, signal_line), both the same length as values
    """
    fast_ema = ema(values, fast)
    slow_ema = ema(values, slow)

    macd_line = [
        f - s if f is not None and s is not None else None
        for f, s in zip(fast_ema, slow_ema)
    ]

    defined = [v for v in macd_line if v is not None]
    if not defined:
        return macd_line, [None] * len(values)

    offset = next(i for i, v in enumerate(macd_line) if v is not None)
    signal_line = [None] * offset + ema(defined, signal)

    return macd_line, signal_line[: len(values)]


def bollinger_bands(
    values: Sequence[float],
    period: int,
    mult: float,
) -> tuple[list[float | None], list[float | None], list[float | None]]:
    """
    Calculate Bollinger Bands.

    middle = SMA(period), upper/lower = middle +/- mult * population stdev.

    Returns:
        Tuple of (upper, middle, lower)
    """
    middle = sma(values, period)
    sd = stdev(values, period)

    upper = [m + d * mult if m is not None and d is not None else None for m, d in zip(middle, sd)]
    lower = [m - d * mult if m is not None and d is not None else None for m, d in zip(middle, sd)]

    return upper, middle, lower


# =============================================================================
# Window helpers
# =============================================================================

def highest(values: Sequence[float], period: int) -> list[float | None]:
    """Calculate highest value over lookback period."""
    if period < 1 or len(values) < period:
        return [None] * len(values)

    arr = np.asarray(values, dtype=np.float64)
    result = np.full_like(arr, np.nan)

    for i in range(period - 1, len(arr)):
        result[i] = np.max(arr[i - period + 1 : i + 1])

    return _to_optional(result)


def lowest(values: Sequence[float], period: int) -> list[float | None]:
    """Calculate lowest value over lookback period."""
    if period < 1 or len(values) < period:
        return [None] * len(values)

    arr = np.asarray(values, dtype=np.float64)
    result = np.full_like(arr, np.nan)

    for i in range(period - 1, len(arr)):
        result[i] = np.min(arr[i - period + 1 : i + 1])

    return _to_optional(result)


def highest_bars(values: Sequence[float], period: int) -> list[int | None]:
    """
    Calculate how many bars ago the highest value of the window occurred.

    Ties resolve to the most recent bar.
    """
    if period < 1 or len(values) < period:
        return [None] * len(values)

    result: list[int | None] = [None] * (period - 1)
    for i in range(period - 1, len(values)):
        window = values[i - period + 1 : i + 1]
        # Reversed so argmax picks the most recent of equal maxima
        result.append(int(np.argmax(window[::-1])))
    return result


def lowest_bars(values: Sequence[float], period: int) -> list[int | None]:
    """
    Calculate how many bars ago the lowest value of the window occurred.

    Ties resolve to the most recent bar.
    """
    if period < 1 or len(values) < period:
        return [None] * len(values)

    result: list[int | None] = [None] * (period - 1)
    for i in range(period - 1, len(values)):
        window = values[i - period + 1 : i + 1]
        result.append(int(np.argmin(window[::-1])))
    return result


def alma(
    values: Sequence[float],
    window: int,
    offset: float = 0.9,
    sigma: float = 6,
) -> list[float]:
    """
    Calculate the Arnaud Legoux (Gaussian weighted) moving average.

    Weights are indexed by lag: ``w[k] = exp(-(k - m)^2 / (2 s^2))`` with
    ``m = floor(offset * (window - 1))`` and ``s = window / sigma``. Near the
    start of the sequence only the available lags are used.
    """
    m = math.floor(offset * (window - 1))
    s = window / sigma
    result = []

    for end in range(len(values)):
        norm = 0.0
        total = 0.0
        for k in range(min(window, end + 1)):
            w = math.exp(-((k - m) * (k - m)) / (2 * s * s))
            norm += w
            total += values[end - k] * w
        result.append(total / norm if norm != 0 else 0.0)

    return result


# =============================================================================
# Script indicator calculator
# =============================================================================

def _points(times: Sequence[int], values: Sequence[float | None]) -> list[SeriesPoint]:
    """Pair defined values with their candle times."""
    return [
        SeriesPoint(time=t, value=v)
        for t, v in zip(times, values)
        if v is not None
    ]


class IndicatorCalculator:
    """Computes classical indicators for descriptors parsed from scripts."""

    _PERIOD_PARAMS = {
        IndicatorKind.SMA: ("period",),
        IndicatorKind.EMA: ("period",),
        IndicatorKind.RSI: ("period",),
        IndicatorKind.MACD: ("fast", "slow", "signal"),
        IndicatorKind.BB: ("period",),
    }

    def calculate(
        self,
        indicator: IndicatorDescriptor,
        history: CandleHistory,
        color_index: int,
    ) -> IndicatorResult | None:
        """
        Calculate one indicator over a candle history.

        Args:
            indicator: Parsed indicator descriptor
            history: Candle history to compute over
            color_index: Batch-wide counter selecting the default color

        Returns:
            IndicatorResult, or None if the descriptor's periods are invalid
        """
        for key in self._PERIOD_PARAMS[indicator.kind]:
            if int(indicator.params.get(key, 0)) < 1:
                logger.warning(
                    "Skipping %s: parameter %s must be >= 1, got %s",
                    indicator.name, key, indicator.params.get(key),
                )
                return None

        closes = history.get_closes()
        times = history.get_times()
        color = indicator.color or DEFAULT_COLORS[color_index % len(DEFAULT_COLORS)]

        if indicator.kind == IndicatorKind.SMA:
            values = sma(closes, int(indicator.params["period"]))
            return IndicatorResult(
                name=indicator.name,
                kind=ResultKind.LINE,
                lines=[LineSeries(label=indicator.name, color=color, points=_points(times, values), width=2)],
            )

        if indicator.kind == IndicatorKind.EMA:
            values = ema(closes, int(indicator.params["period"]))
            return IndicatorResult(
                name=indicator.name,
                kind=ResultKind.LINE,
                lines=[LineSeries(label=indicator.name, color=color, points=_points(times, values), width=2)],
            )

        if indicator.kind == IndicatorKind.RSI:
            values = rsi(closes, int(indicator.params["period"]))
            return IndicatorResult(
                name=indicator.name,
                kind=ResultKind.LINE,
                lines=[LineSeries(label=indicator.name, color=color, points=_points(times, values), width=1)],
            )

        if indicator.kind == IndicatorKind.MACD:
            macd_line, signal_line = macd(
                closes,
                int(indicator.params["fast"]),
                int(indicator.params["slow"]),
                int(indicator.params["signal"]),
            )
            return IndicatorResult(
                name="MACD",
                kind=ResultKind.HISTOGRAM,
                lines=[
                    LineSeries(label="MACD", color=MACD_COLOR, points=_points(times, macd_line), width=2),
                    LineSeries(label="Signal", color=MACD_SIGNAL_COLOR, points=_points(times, signal_line), width=1),
                ],
            )

        # Bollinger Bands
        upper, middle, lower = bollinger_bands(
            closes, int(indicator.params["period"]), indicator.params["stddev"]
        )
        return IndicatorResult(
            name=indicator.name,
            kind=ResultKind.BAND,
            lines=[
                LineSeries(label="Upper", color=BB_BAND_COLOR, points=_points(times, upper), width=1, style=DASHED),
                LineSeries(label="Middle", color=BB_MIDDLE_COLOR, points=_points(times, middle), width=1),
                LineSeries(label="Lower", color=BB_BAND_COLOR, points=_points(times, lower), width=1, style=DASHED),
            ],
        )
