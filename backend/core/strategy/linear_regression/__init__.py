"""Linear regression engine package.

Importing this package registers both the regression line + EMA engine and
the bull/bear power engine.
"""

from core.strategy.linear_regression.generator import (
    BullBearPowerEngine,
    DirectionColor,
    LinearRegressionEmaEngine,
    bull_bear_power,
    correlation,
    extended_gap,
    regression_line,
    split_direction,
)
from core.strategy.linear_regression.models import (
    BULL_BEAR_POWER_ENGINE_NAME,
    LINEAR_REGRESSION_EMA_ENGINE_NAME,
    BullBearPowerConfig,
    LinearRegressionEmaConfig,
)

__all__ = [
    "BullBearPowerEngine",
    "LinearRegressionEmaEngine",
    "BullBearPowerConfig",
    "LinearRegressionEmaConfig",
    "BULL_BEAR_POWER_ENGINE_NAME",
    "LINEAR_REGRESSION_EMA_ENGINE_NAME",
    "DirectionColor",
    "bull_bear_power",
    "correlation",
    "extended_gap",
    "regression_line",
    "split_direction",
]
