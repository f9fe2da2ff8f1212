"""Logistic regression signal engine.

Per-bar toy classifier:
- For every bar a single scalar weight is trained from zero over the
  trailing ``lookback`` bars (feature = bar position, label = close price)
- Loss and prediction are rescaled into the local close-price range
- A HOLD/LONG/SHORT state machine with a holding period turns the rescaled
  loss into entry and exit markers

This module is pure business logic with no I/O dependencies.
"""

import logging
import math
from typing import Sequence

from core.indicators import highest, lowest
from core.models import (
    CandleHistory,
    IndicatorResult,
    LineSeries,
    Marker,
    MarkerType,
    ResultKind,
    SeriesPoint,
)
from core.strategy.logistic_regression.models import (
    LOGISTIC_REGRESSION_ENGINE_NAME,
    LogisticRegressionConfig,
)
from core.strategy.protocol import EngineResult
from core.strategy.registry import register_engine

logger = logging.getLogger(__name__)

HOLD = 0
LONG = 1
SHORT = -1

_H_MIN = 1e-10
_H_MAX = 1 - 1e-10

RESULT_NAME = "ML Logistic Regression"
LOSS_COLOR = "#2196F3"
PREDICTION_COLOR = "#CDDC39"
SIGNAL_LINE_COLOR = "rgba(33, 150, 243, 0.6)"


def sigmoid(z: float) -> float:
    try:
        return 1.0 / (1.0 + math.exp(-z))
    except OverflowError:
        return 0.0


def minimax(value: float, hi: float, lo: float, target_min: float, target_max: float) -> float:
    """Linearly map ``value`` from [lo, hi] into [target_min, target_max].

    A zero-width source range maps to the midpoint of the target range.
    """
    if hi == lo:
        return (target_max + target_min) / 2
    return (target_max - target_min) * (value - lo) / (hi - lo) + target_min


def train_bar(
    features: Sequence[float],
    labels: Sequence[float],
    idx: int,
    period: int,
    lrate: float,
    iterations: int,
) -> tuple[float, float]:
    """
    Train a scalar weight from zero on the window ending at ``idx``.

    Args:
        features: Feature series (bar positions)
        labels: Label series (close prices used as pseudo-labels)
        idx: Index of the bar being trained for
        period: Window size
        lrate: Learning rate
        iterations: Gradient descent steps

    Returns:
        Tuple of (last loss, final prediction)
    """
    window = [k for k in range(idx, idx - period, -1) if k >= 0]
    w = 0.0
    loss = 0.0
    y = labels[idx] or 0.0

    for _ in range(iterations):
        hypothesis = sigmoid(sum(features[k] * w for k in window))

        h = max(_H_MIN, min(_H_MAX, hypothesis))
        loss = -(y * math.log(h) + (1 - y) * math.log(1 - h))

        gradient = sum(features[k] * (hypothesis - (labels[k] or 0.0)) for k in window)
        gradient /= period

        w = w - lrate * gradient

    prediction = sigmoid(sum(features[k] * w for k in window))
    return loss, prediction


def rescale_to_price(
    raw: Sequence[float],
    closes: Sequence[float],
    nlbk: int,
) -> list[float]:
    """
    Min-max rescale ``raw`` into the trailing close-price range.

    For each bar from ``nlbk`` on, the source range is the trailing ``nlbk``
    window of ``raw`` itself and the target range is the same window of
    closes. Earlier bars are 0.
    """
    n = len(raw)
    price_hi = highest(closes, nlbk)
    price_lo = lowest(closes, nlbk)
    raw_hi = highest(raw, nlbk)
    raw_lo = lowest(raw, nlbk)

    scaled = [0.0] * n
    for i in range(nlbk, n):
        scaled[i] = minimax(raw[i], raw_hi[i], raw_lo[i], price_lo[i], price_hi[i])
    return scaled


def generate_markers(
    history: CandleHistory,
    scaled_loss: Sequence[float],
    scaled_pred: Sequence[float],
    config: LogisticRegressionConfig,
) -> list[Marker]:
    """
    Run the HOLD/LONG/SHORT state machine and derive trade markers.

    Price mode compares the close with the scaled loss; cross mode looks for
    the scaled loss crossing the scaled prediction. The holding counter
    resets on every state change, and a position is exited once the counter
    reaches the holding period or the state flips.

    Markers for one bar are emitted in the order: enter long, enter short,
    exit long, exit short.
    """
    candles = history.candles
    n = len(candles)
    states = [HOLD] * n
    markers: list[Marker] = []
    counter = 0

    for i in range(max(config.nlbk, 1), n):
        prev = states[i - 1]
        close = candles[i].close

        if config.use_price_for_signal:
            if close < scaled_loss[i]:
                states[i] = SHORT
            elif close > scaled_loss[i]:
                states[i] = LONG
            else:
                states[i] = prev
        else:
            loss_under = scaled_loss[i] < scaled_pred[i]
            loss_under_prev = scaled_loss[i - 1] < scaled_pred[i - 1]
            loss_over = scaled_loss[i] > scaled_pred[i]
            loss_over_prev = scaled_loss[i - 1] > scaled_pred[i - 1]

            if loss_under and not loss_under_prev:
                states[i] = SHORT
            elif loss_over and not loss_over_prev:
                states[i] = LONG
            else:
                states[i] = prev

        state = states[i]
        changed = state != prev
        counter = 0 if changed else counter + 1
        held = counter == config.holding_period and not changed

        candle = candles[i]
        if changed and state == LONG:
            markers.append(Marker(time=candle.time, type=MarkerType.BUY, price=candle.low))
        if changed and state == SHORT:
            markers.append(Marker(time=candle.time, type=MarkerType.SELL, price=candle.high))
        if (state == LONG and held) or (changed and state == SHORT):
            markers.append(Marker(time=candle.time, type=MarkerType.STOP_BUY, price=candle.high))
        if (state == SHORT and held) or (changed and state == LONG):
            markers.append(Marker(time=candle.time, type=MarkerType.STOP_SELL, price=candle.low))

    return markers


@register_engine(LOGISTIC_REGRESSION_ENGINE_NAME)
class LogisticRegressionEngine:
    """Machine Learning: Logistic Regression signal engine.

    Signal Logic (price mode):
    - LONG: close above the rescaled loss curve
    - SHORT: close below the rescaled loss curve

    Signal Logic (cross mode):
    - LONG: rescaled loss crosses above the rescaled prediction
    - SHORT: rescaled loss crosses below the rescaled prediction
    """

    def __init__(self, config: LogisticRegressionConfig | None = None):
        self.config = config or LogisticRegressionConfig()

    @property
    def name(self) -> str:
        return LOGISTIC_REGRESSION_ENGINE_NAME

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def min_candles(self) -> int:
        return self.config.nlbk + 10

    def compute(self, history: CandleHistory) -> EngineResult:
        """Train per bar, rescale the curves and generate markers.

        Args:
            history: Candles sorted ascending by time

        Returns:
            EngineResult with the signal line (and curves) plus markers
        """
        cfg = self.config
        if cfg.lookback < 1 or cfg.nlbk < 1:
            logger.warning(
                "Logistic regression: lookback and nlbk must be >= 1 (got %d, %d)",
                cfg.lookback, cfg.nlbk,
            )
            return EngineResult()

        n = len(history)
        if n < self.min_candles:
            logger.debug(
                "Logistic regression: %d candles, need %d", n, self.min_candles
            )
            return EngineResult()

        closes = history.get_closes()
        times = history.get_times()

        base = [float(i + 1) for i in range(n)]
        synth = list(closes)

        loss_arr = [0.0] * n
        pred_arr = [0.0] * n
        for i in range(cfg.lookback, n):
            loss_arr[i], pred_arr[i] = train_bar(
                base, synth, i, cfg.lookback, cfg.lrate, cfg.effective_iterations
            )

        scaled_loss = rescale_to_price(loss_arr, closes, cfg.nlbk)
        scaled_pred = rescale_to_price(pred_arr, closes, cfg.nlbk)

        markers = generate_markers(history, scaled_loss, scaled_pred, cfg)

        loss_points = [SeriesPoint(time=times[i], value=scaled_loss[i]) for i in range(cfg.nlbk, n)]
        pred_points = [SeriesPoint(time=times[i], value=scaled_pred[i]) for i in range(cfg.nlbk, n)]

        lines: list[LineSeries] = []
        if cfg.show_curves:
            lines.append(LineSeries(label="Loss", color=LOSS_COLOR, points=loss_points, width=2))
            lines.append(LineSeries(label="Prediction", color=PREDICTION_COLOR, points=pred_points, width=2))
        lines.append(
            LineSeries(
                label="ML Signal Line",
                color=SIGNAL_LINE_COLOR,
                points=loss_points,
                width=1,
                style=2,
            )
        )

        logger.debug(
            "Logistic regression: %d bars, %d markers", n, len(markers)
        )
        return EngineResult(
            indicator=IndicatorResult(name=RESULT_NAME, kind=ResultKind.LINE, lines=lines),
            markers=markers,
        )
