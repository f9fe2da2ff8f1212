"""Indicator script parsing and classification (pure text processing, no I/O)."""

from core.script.classifier import (
    ClassifiedScript,
    ScriptKind,
    classify_script,
)
from core.script.parser import (
    parse_color,
    parse_line,
    parse_script,
    parse_bull_bear_power_params,
    parse_linear_regression_ema_params,
    parse_logistic_regression_params,
)
from core.script.templates import (
    BULL_BEAR_POWER_TEMPLATE,
    LINEAR_REGRESSION_EMA_TEMPLATE,
    LOGISTIC_REGRESSION_TEMPLATE,
    INDICATOR_TEMPLATES,
    ML_TEMPLATES,
    ScriptTemplate,
    all_templates,
    get_template,
    script_preview,
)

__all__ = [
    "ClassifiedScript",
    "ScriptKind",
    "classify_script",
    "parse_color",
    "parse_line",
    "parse_script",
    "parse_bull_bear_power_params",
    "parse_linear_regression_ema_params",
    "parse_logistic_regression_params",
    "BULL_BEAR_POWER_TEMPLATE",
    "LINEAR_REGRESSION_EMA_TEMPLATE",
    "LOGISTIC_REGRESSION_TEMPLATE",
    "INDICATOR_TEMPLATES",
    "ML_TEMPLATES",
    "ScriptTemplate",
    "all_templates",
    "get_template",
    "script_preview",
]
