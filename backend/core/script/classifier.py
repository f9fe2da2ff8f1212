"""Script classification.

Every script is routed to exactly one engine. Signatures are tested in a
fixed order and the first match wins:

1. Logistic regression
2. Linear regression line with EMA
3. Bull and bear power
4. Generic indicator lines
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel

from core.models import IndicatorDescriptor
from core.script.parser import (
    parse_bull_bear_power_params,
    parse_linear_regression_ema_params,
    parse_logistic_regression_params,
    parse_script,
)
from core.strategy.linear_regression import (
    BULL_BEAR_POWER_ENGINE_NAME,
    LINEAR_REGRESSION_EMA_ENGINE_NAME,
)
from core.strategy.logistic_regression import LOGISTIC_REGRESSION_ENGINE_NAME

logger = logging.getLogger(__name__)


class ScriptKind(str, Enum):
    """Classification tag. Engine kinds share their registry names."""

    LOGISTIC_REGRESSION = LOGISTIC_REGRESSION_ENGINE_NAME
    LINEAR_REGRESSION_EMA = LINEAR_REGRESSION_EMA_ENGINE_NAME
    BULL_BEAR_POWER = BULL_BEAR_POWER_ENGINE_NAME
    GENERIC = "generic"


@dataclass(frozen=True)
class ClassifiedScript:
    """Tagged result of classifying one script.

    Attributes:
        kind: Which engine the script routes to.
        config: Typed engine parameters (None for generic scripts).
        indicators: Parsed indicator lines (empty for engine scripts).
    """

    kind: ScriptKind
    config: BaseModel | None = None
    indicators: tuple[IndicatorDescriptor, ...] = field(default_factory=tuple)


_SIGMOID = re.compile(r"sigmoid", re.IGNORECASE)


def is_logistic_regression(script: str) -> bool:
    return (
        "logistic_regression" in script
        or "Machine Learning" in script
        or "Logistic Regression" in script
        or _SIGMOID.search(script) is not None
    )


def is_linear_regression_ema(script: str) -> bool:
    return (
        "Linear Regression Line with EMA" in script
        or "ML2" in script
        or (
            "Linear Regression" in script
            and "ema" in script
            and "Bull and Bear" not in script
        )
    )


def is_bull_bear_power(script: str) -> bool:
    return (
        "Bull and Bear Power" in script
        or "BBP_NM" in script
        or "ML3" in script
        or "f_exp_lr" in script
    )


def classify_script(script: str) -> ClassifiedScript:
    """
    Classify a script and parse its parameters.

    Args:
        script: Raw script text

    Returns:
        ClassifiedScript tagged with the engine that handles the script
    """
    if is_logistic_regression(script):
        return ClassifiedScript(
            kind=ScriptKind.LOGISTIC_REGRESSION,
            config=parse_logistic_regression_params(script),
        )

    if is_linear_regression_ema(script):
        return ClassifiedScript(
            kind=ScriptKind.LINEAR_REGRESSION_EMA,
            config=parse_linear_regression_ema_params(script),
        )

    if is_bull_bear_power(script):
        return ClassifiedScript(
            kind=ScriptKind.BULL_BEAR_POWER,
            config=parse_bull_bear_power_params(script),
        )

    return ClassifiedScript(
        kind=ScriptKind.GENERIC,
        indicators=tuple(parse_script(script)),
    )
