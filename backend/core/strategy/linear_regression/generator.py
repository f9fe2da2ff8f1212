"""Linear regression engines.

Two engines share this module:

- LinearRegressionEmaEngine: rolling least-squares regression line of close
  against bar index, plus a continuous EMA of close.
- BullBearPowerEngine: bull and bear power from the distance to the window's
  extreme closes, and a direction oscillator split into rising and falling
  traces.

This module is pure business logic with no I/O dependencies.
"""

import logging
import math
from enum import Enum
from typing import Sequence

import numpy as np

from core.indicators import (
    alma,
    ema_continuous,
    highest,
    highest_bars,
    lowest,
    lowest_bars,
)
from core.models import (
    CandleHistory,
    IndicatorResult,
    LineSeries,
    ResultKind,
    SeriesPoint,
)
from core.strategy.linear_regression.models import (
    ALMA_OFFSET,
    BULL_BEAR_POWER_ENGINE_NAME,
    LINEAR_REGRESSION_EMA_ENGINE_NAME,
    BullBearPowerConfig,
    LinearRegressionEmaConfig,
)
from core.strategy.protocol import EngineResult
from core.strategy.registry import register_engine

logger = logging.getLogger(__name__)


class DirectionColor(str, Enum):
    """Direction oscillator state for one bar."""

    GREEN = "green"
    RED = "red"
    YELLOW = "yellow"


# =============================================================================
# Regression helpers
# =============================================================================

def correlation(x: np.ndarray, y: np.ndarray) -> float:
    """Pearson correlation of two equally sized windows.

    Returns 0 when either window has no variance.
    """
    n = len(x)
    if n < 2:
        return 0.0

    sum_x = float(np.sum(x))
    sum_y = float(np.sum(y))
    num = n * float(np.sum(x * y)) - sum_x * sum_y
    den_sq = (n * float(np.sum(x * x)) - sum_x * sum_x) * (n * float(np.sum(y * y)) - sum_y * sum_y)
    # Rounding can push a zero-variance product slightly negative
    if den_sq <= 0:
        return 0.0
    return num / math.sqrt(den_sq)


def _population_stdev(window: np.ndarray) -> float:
    if len(window) < 2:
        return 0.0
    mean = float(np.mean(window))
    return math.sqrt(float(np.sum((window - mean) ** 2)) / len(window))


def regression_line(closes: Sequence[float], length: int) -> list[float | None]:
    """
    Calculate the rolling least-squares fit of close against bar index.

    slope = corr(index, close) * stdev(close) / stdev(index)
    intercept = mean(close) - slope * mean(index)

    Each bar's value is the fitted line evaluated at that bar. A window with
    no index variance falls back to the mean close.
    """
    n = len(closes)
    if length < 1 or n < length:
        return [None] * n

    y_all = np.asarray(closes, dtype=np.float64)
    x_all = np.arange(n, dtype=np.float64)
    result: list[float | None] = [None] * (length - 1)

    for i in range(length - 1, n):
        x = x_all[i - length + 1 : i + 1]
        y = y_all[i - length + 1 : i + 1]
        x_mean = float(np.mean(x))
        y_mean = float(np.mean(y))
        mx = _population_stdev(x)
        my = _population_stdev(y)

        if mx == 0:
            result.append(y_mean)
            continue

        slope = correlation(x, y) * (my / mx)
        intercept = y_mean - slope * x_mean
        result.append(i * slope + intercept)

    return result


# =============================================================================
# Bull/bear helpers
# =============================================================================

def extended_gap(height: float, bars_ago: int) -> float:
    """Extend a price gap by its per-bar rate: height + height / bars_ago."""
    if bars_ago == 0:
        return height
    return height + height / bars_ago


def bull_bear_power(
    closes: Sequence[float],
    window: int,
) -> tuple[list[float], list[float]]:
    """
    Calculate bull and bear power.

    bear = -extended_gap(highest - close, bars since highest), floored at 0
    bull = extended_gap(close - lowest, bars since lowest), floored at 0

    Bars-ago of 0 count as 1. Bars before the first full window are 0.

    Returns:
        Tuple of (bull, bear)
    """
    n = len(closes)
    bull = [0.0] * n
    bear = [0.0] * n

    h_values = highest(closes, window)
    l_values = lowest(closes, window)
    h_bars = highest_bars(closes, window)
    l_bars = lowest_bars(closes, window)

    for i in range(window - 1, n):
        bear_raw = extended_gap(h_values[i] - closes[i], max(h_bars[i], 1))
        bear[i] = -bear_raw if bear_raw > 0 else 0.0

        bull_raw = extended_gap(closes[i] - l_values[i], max(l_bars[i], 1))
        bull[i] = bull_raw if bull_raw > 0 else 0.0

    return bull, bear


def split_direction(
    times: Sequence[int],
    direction: Sequence[float],
    colors: Sequence[DirectionColor],
    start: int,
) -> tuple[list[SeriesPoint], list[SeriesPoint]]:
    """
    Split the direction series into rising (green/yellow) and falling (red)
    traces.

    At every color transition the previous bar's point is repeated at the
    head of the trace being entered so both traces meet at the crossover.
    """
    rising: list[SeriesPoint] = []
    falling: list[SeriesPoint] = []

    for i in range(start, len(direction)):
        is_rising = colors[i] != DirectionColor.RED
        prev_rising = i > start and colors[i - 1] != DirectionColor.RED
        point = SeriesPoint(time=times[i], value=direction[i])

        if is_rising:
            if i > start and not prev_rising:
                rising.append(SeriesPoint(time=times[i - 1], value=direction[i - 1]))
            rising.append(point)
        else:
            if i > start and prev_rising:
                falling.append(SeriesPoint(time=times[i - 1], value=direction[i - 1]))
            falling.append(point)

    return rising, falling


# =============================================================================
# Engines
# =============================================================================

@register_engine(LINEAR_REGRESSION_EMA_ENGINE_NAME)
class LinearRegressionEmaEngine:
    """Linear Regression Line with EMA.

    Emits the rolling regression line and a continuous EMA of close as two
    independent lines.
    """

    def __init__(self, config: LinearRegressionEmaConfig | None = None):
        self.config = config or LinearRegressionEmaConfig()

    @property
    def name(self) -> str:
        return LINEAR_REGRESSION_EMA_ENGINE_NAME

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def min_candles(self) -> int:
        return self.config.regression_length + 5

    def compute(self, history: CandleHistory) -> EngineResult:
        cfg = self.config
        if cfg.regression_length < 1 or cfg.ema_length < 1:
            logger.warning(
                "Linear regression: lengths must be >= 1 (got %d, %d)",
                cfg.regression_length, cfg.ema_length,
            )
            return EngineResult()

        n = len(history)
        if n < self.min_candles:
            logger.debug("Linear regression: %d candles, need %d", n, self.min_candles)
            return EngineResult()

        closes = history.get_closes()
        times = history.get_times()

        reg_values = regression_line(closes, cfg.regression_length)
        reg_points = [
            SeriesPoint(time=t, value=v)
            for t, v in zip(times, reg_values)
            if v is not None
        ]

        ema_values = ema_continuous(closes, cfg.ema_length)
        ema_points = [
            SeriesPoint(time=times[i], value=ema_values[i])
            for i in range(cfg.ema_length - 1, n)
        ]

        return EngineResult(
            indicator=IndicatorResult(
                name="ML2 Linear Regression + EMA",
                kind=ResultKind.LINE,
                lines=[
                    LineSeries(label="Linear Regression", color="#FF0000", points=reg_points, width=2),
                    LineSeries(label=f"EMA {cfg.ema_length}", color="#2196F3", points=ema_points, width=2),
                ],
            )
        )


@register_engine(BULL_BEAR_POWER_ENGINE_NAME)
class BullBearPowerEngine:
    """Improved Linear Regression Bull and Bear Power.

    Direction:
    - smooth: Gaussian moving average of bull + bear, colored by its slope
    - raw: 3 * bull + 3 * bear, colored against bull and bear directly
    """

    def __init__(self, config: BullBearPowerConfig | None = None):
        self.config = config or BullBearPowerConfig()

    @property
    def name(self) -> str:
        return BULL_BEAR_POWER_ENGINE_NAME

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def min_candles(self) -> int:
        return self.config.window + 5

    def _direction(
        self,
        bull: list[float],
        bear: list[float],
    ) -> tuple[list[float], list[DirectionColor]]:
        cfg = self.config
        n = len(bull)
        start = cfg.window - 1
        direction = [0.0] * n
        colors = [DirectionColor.YELLOW] * n

        if cfg.smooth:
            raw = [b + r for b, r in zip(bull, bear)]
            smoothed = alma(raw, cfg.smooth_factor, ALMA_OFFSET, cfg.sigma)
            for i in range(start, n):
                direction[i] = smoothed[i]
            for i in range(cfg.window, n):
                if direction[i] > direction[i - 1]:
                    colors[i] = DirectionColor.GREEN
                elif direction[i] < direction[i - 1]:
                    colors[i] = DirectionColor.RED
        else:
            for i in range(start, n):
                direction[i] = bull[i] * 3 + bear[i] * 3
                if direction[i] > bull[i]:
                    colors[i] = DirectionColor.GREEN
                elif direction[i] < bear[i]:
                    colors[i] = DirectionColor.RED

        return direction, colors

    def compute(self, history: CandleHistory) -> EngineResult:
        cfg = self.config
        if cfg.window < 1 or cfg.smooth_factor < 1 or cfg.sigma <= 0:
            logger.warning(
                "Bull/bear power: invalid parameters window=%d smooth_factor=%d sigma=%s",
                cfg.window, cfg.smooth_factor, cfg.sigma,
            )
            return EngineResult()

        n = len(history)
        if n < self.min_candles:
            logger.debug("Bull/bear power: %d candles, need %d", n, self.min_candles)
            return EngineResult()

        closes = history.get_closes()
        times = history.get_times()
        start = cfg.window - 1

        bull, bear = bull_bear_power(closes, cfg.window)
        direction, colors = self._direction(bull, bear)
        rising, falling = split_direction(times, direction, colors, start)

        bear_points = [SeriesPoint(time=times[i], value=bear[i]) for i in range(start, n)]
        bull_points = [SeriesPoint(time=times[i], value=bull[i]) for i in range(start, n)]

        return EngineResult(
            indicator=IndicatorResult(
                name="ML3 Bull Bear Power",
                kind=ResultKind.LINE,
                lines=[
                    LineSeries(label="Bear", color="#FF4444", points=bear_points, width=1),
                    LineSeries(label="Bull", color="#44FF44", points=bull_points, width=1),
                    LineSeries(label="Dir ▲", color="#00FF00", points=rising, width=3),
                    LineSeries(label="Dir ▼", color="#FF0055", points=falling, width=3),
                ],
            )
        )
