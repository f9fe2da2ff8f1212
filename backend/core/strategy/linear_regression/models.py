"""Linear regression and bull/bear power engine configuration."""

from pydantic import BaseModel

LINEAR_REGRESSION_EMA_ENGINE_NAME = "linear_regression_ema"
BULL_BEAR_POWER_ENGINE_NAME = "bull_bear_power"

# Gaussian moving average offset used to smooth the direction series
ALMA_OFFSET = 0.9


class LinearRegressionEmaConfig(BaseModel):
    """Configuration for the regression line + EMA engine."""

    regression_length: int = 14
    ema_length: int = 20


class BullBearPowerConfig(BaseModel):
    """Configuration for the bull/bear power engine."""

    window: int = 10
    smooth: bool = True
    smooth_factor: int = 5
    sigma: float = 6
