"""Logistic regression engine configuration."""

from pydantic import BaseModel

LOGISTIC_REGRESSION_ENGINE_NAME = "logistic_regression"

# Hard cap on gradient descent steps per bar, whatever the script asks for
MAX_TRAINING_ITERATIONS = 200


class LogisticRegressionConfig(BaseModel):
    """Parameters read from a logistic regression script."""

    lookback: int = 2  # Lookback window size
    nlbk: int = 2  # Normalization lookback
    lrate: float = 0.0009  # Learning rate
    iterations: int = 1000  # Training iterations (capped)
    holding_period: int = 1
    use_price_for_signal: bool = True
    show_curves: bool = False  # Show loss & prediction curves

    @property
    def effective_iterations(self) -> int:
        return min(self.iterations, MAX_TRAINING_ITERATIONS)
