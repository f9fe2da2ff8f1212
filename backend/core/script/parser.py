"""Indicator script parsing.

Generic scripts are read line by line into IndicatorDescriptor objects.
Specialized engine scripts are scanned for ``name = input(<literal>)``
assignments and turned into typed engine configs. Parsing is best-effort:
lines and parameters that do not match are ignored, never reported.
"""

import logging
import re

from core.models import IndicatorDescriptor, IndicatorKind
from core.strategy.linear_regression import BullBearPowerConfig, LinearRegressionEmaConfig
from core.strategy.logistic_regression import LogisticRegressionConfig

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "//"

NAMED_COLORS = {
    "color.red": "#EF5350",
    "color.green": "#26A69A",
    "color.blue": "#2196F3",
    "color.yellow": "#FFEB3B",
    "color.orange": "#FF9800",
    "color.purple": "#AB47BC",
    "color.white": "#FFFFFF",
    "color.aqua": "#00BCD4",
    "color.lime": "#CDDC39",
    "color.fuchsia": "#E040FB",
}

RSI_COLOR = "#AB47BC"
MACD_COLOR = "#2196F3"
BB_COLOR = "#FF9800"

_SMA_CALL = re.compile(r"(?:ta\.)?sma\s*\(\s*close\s*,\s*(\d+)\s*\)", re.IGNORECASE)
_EMA_CALL = re.compile(r"(?:ta\.)?ema\s*\(\s*close\s*,\s*(\d+)\s*\)", re.IGNORECASE)
_RSI_CALL = re.compile(r"(?:ta\.)?rsi\s*\(\s*close\s*,\s*(\d+)\s*\)", re.IGNORECASE)
_MACD_CALL = re.compile(
    r"(?:ta\.)?macd\s*\(\s*close\s*,\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)", re.IGNORECASE
)
_BB_CALL = re.compile(r"(?:ta\.)?bb\s*\(\s*close\s*,\s*(\d+)\s*,\s*(\d+\.?\d*)\s*\)", re.IGNORECASE)

_PERIOD_SHORTHAND = re.compile(r"^(sma|ema|rsi)\s+(\d+)$", re.IGNORECASE)
_MACD_SHORTHAND = re.compile(r"^macd\s+(\d+)\s+(\d+)\s+(\d+)$", re.IGNORECASE)
_BB_SHORTHAND = re.compile(r"^bb\s+(\d+)\s+(\d+\.?\d*)$", re.IGNORECASE)

_COLOR_TOKEN = re.compile(r"color\s*[=:]\s*(#[0-9a-fA-F]{6}|color\.\w+)")


def parse_color(color: str | None) -> str | None:
    """Resolve a ``#RRGGBB`` or ``color.<name>`` token to a hex color."""
    if not color:
        return None
    if color.startswith("#"):
        return color
    return NAMED_COLORS.get(color)


def _line_color(line: str) -> str | None:
    match = _COLOR_TOKEN.search(line)
    return parse_color(match.group(1)) if match else None


def _macd(fast: str, slow: str, signal: str, color: str | None) -> IndicatorDescriptor:
    return IndicatorDescriptor(
        name="MACD",
        kind=IndicatorKind.MACD,
        params={"fast": int(fast), "slow": int(slow), "signal": int(signal)},
        color=color,
    )


def _bb(period: str, mult: str, color: str | None) -> IndicatorDescriptor:
    return IndicatorDescriptor(
        name=f"BB {period},{mult}",
        kind=IndicatorKind.BB,
        params={"period": int(period), "stddev": float(mult)},
        color=color,
    )


def parse_line(line: str) -> IndicatorDescriptor | None:
    """Parse a single trimmed script line, or return None if unrecognized."""
    match = _SMA_CALL.search(line)
    if match:
        period = int(match.group(1))
        return IndicatorDescriptor(
            name=f"SMA {period}", kind=IndicatorKind.SMA,
            params={"period": period}, color=_line_color(line),
        )

    match = _EMA_CALL.search(line)
    if match:
        period = int(match.group(1))
        return IndicatorDescriptor(
            name=f"EMA {period}", kind=IndicatorKind.EMA,
            params={"period": period}, color=_line_color(line),
        )

    match = _RSI_CALL.search(line)
    if match:
        period = int(match.group(1))
        return IndicatorDescriptor(
            name=f"RSI {period}", kind=IndicatorKind.RSI,
            params={"period": period}, color=RSI_COLOR,
        )

    match = _MACD_CALL.search(line)
    if match:
        return _macd(*match.groups(), color=MACD_COLOR)

    match = _BB_CALL.search(line)
    if match:
        return _bb(*match.groups(), color=BB_COLOR)

    # Shorthand: "SMA 20", "EMA 50", "RSI 14"
    match = _PERIOD_SHORTHAND.match(line)
    if match:
        func = match.group(1).lower()
        period = int(match.group(2))
        return IndicatorDescriptor(
            name=f"{func.upper()} {period}", kind=IndicatorKind(func),
            params={"period": period},
        )

    match = _MACD_SHORTHAND.match(line)
    if match:
        return _macd(*match.groups(), color=None)

    match = _BB_SHORTHAND.match(line)
    if match:
        return _bb(*match.groups(), color=None)

    return None


def script_lines(script: str) -> list[str]:
    """Trimmed, non-blank, non-comment lines of a script."""
    lines = (line.strip() for line in script.split("\n"))
    return [line for line in lines if line and not line.startswith(COMMENT_PREFIX)]


def parse_script(script: str) -> list[IndicatorDescriptor]:
    """
    Parse a generic indicator script.

    Args:
        script: Script text, one indicator per line

    Returns:
        Descriptors in line order; unrecognized lines are skipped
    """
    indicators = []
    for line in script_lines(script):
        indicator = parse_line(line)
        if indicator is None:
            logger.debug("Ignoring unrecognized script line: %r", line)
            continue
        indicators.append(indicator)
    return indicators


# =============================================================================
# Specialized engine parameters
# =============================================================================

_INT = r"(\d+)"
_REAL = r"([\d.]+)"
_BOOL = r"(true|false)"


def _input_value(script: str, name: str, literal: str, defval: bool = False) -> str | None:
    """First literal assigned to ``name`` through an ``input(...)`` call."""
    if defval:
        pattern = rf"{name}\s*=\s*input\s*\([^)]*defval\s*=\s*{literal}"
    else:
        pattern = rf"{name}\s*=\s*input\s*\(\s*{literal}"
    match = re.search(pattern, script)
    return match.group(1) if match else None


def _collect(script: str, fields: dict, defval: bool = False) -> dict:
    """Read every known parameter present in the script.

    ``fields`` maps config field -> (script name, literal pattern, converter).
    """
    values = {}
    for field_name, (name, literal, convert) in fields.items():
        raw = _input_value(script, name, literal, defval=defval)
        if raw is None:
            continue
        try:
            values[field_name] = convert(raw)
        except ValueError:
            logger.debug("Ignoring unparsable value %r for %s", raw, name)
    return values


def _to_bool(raw: str) -> bool:
    return raw == "true"


def parse_logistic_regression_params(script: str) -> LogisticRegressionConfig:
    """Extract logistic regression inputs, defaulting anything missing."""
    return LogisticRegressionConfig(**_collect(script, {
        "lookback": ("lookback", _INT, int),
        "nlbk": ("nlbk", _INT, int),
        "lrate": ("lrate", _REAL, float),
        "iterations": ("iterations", _INT, int),
        "holding_period": ("holding_p", _INT, int),
        "show_curves": ("curves", _BOOL, _to_bool),
        "use_price_for_signal": ("useprice", _BOOL, _to_bool),
    }))


def parse_linear_regression_ema_params(script: str) -> LinearRegressionEmaConfig:
    """Extract regression line + EMA inputs, defaulting anything missing."""
    return LinearRegressionEmaConfig(**_collect(script, {
        "regression_length": ("length", _INT, int),
        "ema_length": ("emaLength", _INT, int),
    }))


def parse_bull_bear_power_params(script: str) -> BullBearPowerConfig:
    """Extract bull/bear power inputs (``defval=`` form), defaulting anything missing."""
    return BullBearPowerConfig(**_collect(script, {
        "window": ("window", _INT, int),
        "smooth": ("smooth", _BOOL, _to_bool),
        "smooth_factor": ("smap", _INT, int),
        "sigma": ("sigma", _INT, int),
    }, defval=True))
