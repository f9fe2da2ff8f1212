"""Logistic regression engine package.

Importing this package triggers engine registration via the
@register_engine decorator on LogisticRegressionEngine.
"""

from core.strategy.logistic_regression.generator import (
    LogisticRegressionEngine,
    generate_markers,
    minimax,
    rescale_to_price,
    sigmoid,
    train_bar,
)
from core.strategy.logistic_regression.models import (
    LogisticRegressionConfig,
    LOGISTIC_REGRESSION_ENGINE_NAME,
    MAX_TRAINING_ITERATIONS,
)

__all__ = [
    "LogisticRegressionEngine",
    "LogisticRegressionConfig",
    "LOGISTIC_REGRESSION_ENGINE_NAME",
    "MAX_TRAINING_ITERATIONS",
    "generate_markers",
    "minimax",
    "rescale_to_price",
    "sigmoid",
    "train_bar",
]
