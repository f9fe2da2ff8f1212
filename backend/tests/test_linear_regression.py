"""Tests for the linear regression and bull/bear power engines."""

import numpy as np
import pytest

from core.models import Candle, CandleHistory, SeriesPoint
from core.strategy import SignalEngine, create_engine, list_engines
from core.strategy.linear_regression import (
    BULL_BEAR_POWER_ENGINE_NAME,
    LINEAR_REGRESSION_EMA_ENGINE_NAME,
    BullBearPowerConfig,
    BullBearPowerEngine,
    DirectionColor,
    LinearRegressionEmaConfig,
    LinearRegressionEmaEngine,
    bull_bear_power,
    correlation,
    extended_gap,
    regression_line,
    split_direction,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_history(closes: list[float]) -> CandleHistory:
    return CandleHistory.from_candles(
        Candle(time=1_700_000_000 + i * 3600, open=c, high=c + 1, low=c - 1, close=c)
        for i, c in enumerate(closes)
    )


def _wave(n: int) -> list[float]:
    return [200.0 + 10 * np.sin(i / 3) + i * 0.5 for i in range(n)]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestRegistry:
    def test_both_engines_registered(self):
        engines = list_engines()
        assert LINEAR_REGRESSION_EMA_ENGINE_NAME in engines
        assert BULL_BEAR_POWER_ENGINE_NAME in engines

    def test_create_with_config(self):
        engine = create_engine(
            BULL_BEAR_POWER_ENGINE_NAME, config=BullBearPowerConfig(window=20)
        )
        assert isinstance(engine, BullBearPowerEngine)
        assert engine.min_candles == 25

    def test_satisfy_engine_protocol(self):
        assert isinstance(LinearRegressionEmaEngine(), SignalEngine)
        assert isinstance(BullBearPowerEngine(), SignalEngine)


# ---------------------------------------------------------------------------
# Regression helpers
# ---------------------------------------------------------------------------

class TestRegressionHelpers:
    def test_correlation_perfect(self):
        x = np.array([0.0, 1.0, 2.0])
        assert correlation(x, 2 * x + 2) == pytest.approx(1.0)
        assert correlation(x, -x) == pytest.approx(-1.0)

    def test_correlation_without_variance(self):
        x = np.array([0.0, 1.0, 2.0])
        assert correlation(x, np.array([5.0, 5.0, 5.0])) == 0.0

    def test_regression_line_on_linear_data(self):
        closes = [2.0 * i + 5 for i in range(20)]
        result = regression_line(closes, 5)

        assert result[:4] == [None] * 4
        assert result[4:] == pytest.approx(closes[4:])

    def test_regression_line_length_one_is_close(self):
        closes = [3.0, 1.0, 4.0]
        assert regression_line(closes, 1) == pytest.approx(closes)

    def test_regression_line_flat(self):
        result = regression_line([7.0] * 6, 3)
        assert result[2:] == pytest.approx([7.0] * 4)


# ---------------------------------------------------------------------------
# Bull/bear helpers
# ---------------------------------------------------------------------------

class TestBullBearHelpers:
    def test_extended_gap(self):
        assert extended_gap(4, 2) == pytest.approx(6)
        assert extended_gap(4, 0) == pytest.approx(4)

    def test_uptrend_has_only_bull_power(self):
        bull, bear = bull_bear_power([1.0, 2.0, 3.0, 4.0, 5.0], 3)
        # close - lowest = 2, lowest two bars ago: 2 + 2 / 2
        assert bull == pytest.approx([0, 0, 3, 3, 3])
        assert bear == pytest.approx([0] * 5)

    def test_downtrend_has_only_bear_power(self):
        bull, bear = bull_bear_power([5.0, 4.0, 3.0, 2.0, 1.0], 3)
        assert bear == pytest.approx([0, 0, -3, -3, -3])
        assert bull == pytest.approx([0] * 5)

    def test_split_direction_duplicates_boundary(self):
        Y, G, R = DirectionColor.YELLOW, DirectionColor.GREEN, DirectionColor.RED
        times = [1, 2, 3, 4, 5, 6]
        direction = [0.0, 1.0, 2.0, 1.0, 0.0, 0.5]
        colors = [Y, G, G, R, R, G]

        rising, falling = split_direction(times, direction, colors, 0)

        assert rising == [
            SeriesPoint(time=1, value=0.0),
            SeriesPoint(time=2, value=1.0),
            SeriesPoint(time=3, value=2.0),
            SeriesPoint(time=5, value=0.0),
            SeriesPoint(time=6, value=0.5),
        ]
        assert falling == [
            SeriesPoint(time=3, value=2.0),
            SeriesPoint(time=4, value=1.0),
            SeriesPoint(time=5, value=0.0),
        ]

    def test_split_direction_no_duplicate_at_start(self):
        R = DirectionColor.RED
        rising, falling = split_direction([1, 2, 3], [0.0, -1.0, -2.0], [R, R, R], 1)
        assert rising == []
        assert [p.time for p in falling] == [2, 3]


# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------

class TestLinearRegressionEmaEngine:
    def test_min_candles(self):
        engine = LinearRegressionEmaEngine(LinearRegressionEmaConfig(regression_length=14))
        assert engine.compute(_make_history(_wave(18))).is_empty
        assert not engine.compute(_make_history(_wave(19))).is_empty

    def test_lines(self):
        history = _make_history(_wave(60))
        result = LinearRegressionEmaEngine().compute(history)

        indicator = result.indicator
        assert indicator.name == "ML2 Linear Regression + EMA"
        assert result.markers == []

        regression, ema_line = indicator.lines
        assert regression.label == "Linear Regression"
        assert regression.color == "#FF0000"
        assert len(regression.points) == 60 - 14 + 1
        assert regression.points[0].time == history[13].time

        assert ema_line.label == "EMA 20"
        assert ema_line.color == "#2196F3"
        assert len(ema_line.points) == 60 - 20 + 1
        assert ema_line.points[0].time == history[19].time

    def test_invalid_lengths(self):
        engine = LinearRegressionEmaEngine(LinearRegressionEmaConfig(ema_length=0))
        assert engine.compute(_make_history(_wave(60))).is_empty


class TestBullBearPowerEngine:
    def test_min_candles(self):
        engine = BullBearPowerEngine(BullBearPowerConfig(window=10))
        assert engine.compute(_make_history(_wave(14))).is_empty
        assert not engine.compute(_make_history(_wave(15))).is_empty

    def test_lines(self):
        history = _make_history(_wave(80))
        result = BullBearPowerEngine().compute(history)

        indicator = result.indicator
        assert indicator.name == "ML3 Bull Bear Power"
        assert [line.label for line in indicator.lines] == ["Bear", "Bull", "Dir ▲", "Dir ▼"]

        bear, bull, rising, falling = indicator.lines
        assert len(bull.points) == 80 - 10 + 1
        assert bull.points[0].time == history[9].time
        assert all(p.value >= 0 for p in bull.points)
        assert all(p.value <= 0 for p in bear.points)
        assert rising.width == falling.width == 3

    def test_direction_traces_cover_every_bar(self):
        history = _make_history(_wave(80))
        result = BullBearPowerEngine().compute(history)
        _, _, rising, falling = result.indicator.lines

        covered = {p.time for p in rising.points} | {p.time for p in falling.points}
        assert covered == set(history.get_times()[9:])

    def test_raw_mode(self):
        config = BullBearPowerConfig(smooth=False)
        result = BullBearPowerEngine(config).compute(_make_history(_wave(40)))
        _, bull, rising, falling = result.indicator.lines

        assert len(bull.points) == 31
        assert rising.points or falling.points

    def test_invalid_params(self):
        engine = BullBearPowerEngine(BullBearPowerConfig(smooth_factor=0))
        assert engine.compute(_make_history(_wave(40))).is_empty
