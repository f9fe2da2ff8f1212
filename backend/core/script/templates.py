"""Built-in script templates and script previews."""

from pydantic import BaseModel, ConfigDict

from core.script.classifier import ScriptKind, classify_script
from core.script.parser import COMMENT_PREFIX

PREVIEW_LENGTH = 40


class ScriptTemplate(BaseModel):
    """A named script users can add with one click."""

    model_config = ConfigDict(frozen=True)

    name: str
    script: str


LOGISTIC_REGRESSION_TEMPLATE = """// Machine Learning: Logistic Regression (v.3)
// Paste your full PineScript here, parameters will be auto-detected

lookback   = input(2, 'Lookback Window Size')
nlbk       = input(2, 'Normalization Lookback')
lrate      = input(0.0009, 'Learning Rate')
iterations = input(1000, 'Training Iterations')
holding_p  = input(1, 'Holding Period')
curves     = input(false, 'Show Loss & Prediction Curves?')
useprice   = input(true, 'Use Price Data for Signal Generation?')

logistic_regression(base, synth, lookback, lrate, iterations)"""

LINEAR_REGRESSION_EMA_TEMPLATE = """// Linear Regression Line with EMA

length    = input(14, 'Regression Length')
emaLength = input(20, 'EMA Length')"""

BULL_BEAR_POWER_TEMPLATE = """// Improved Linear Regression Bull and Bear Power v02

window = input(title='Window', defval=10)
smooth = input(title='Smooth?', defval=true)
smap   = input(title='Smooth Factor', defval=5)
sigma  = input(title='Sigma', defval=6)"""

INDICATOR_TEMPLATES: list[ScriptTemplate] = [
    ScriptTemplate(name="SMA 20", script="ta.sma(close, 20)"),
    ScriptTemplate(name="SMA 50", script="ta.sma(close, 50)"),
    ScriptTemplate(name="SMA 200", script="ta.sma(close, 200)"),
    ScriptTemplate(name="EMA 12", script="ta.ema(close, 12)"),
    ScriptTemplate(name="EMA 26", script="ta.ema(close, 26)"),
    ScriptTemplate(name="RSI 14", script="ta.rsi(close, 14)"),
    ScriptTemplate(name="MACD", script="ta.macd(close, 12, 26, 9)"),
    ScriptTemplate(name="Bollinger Bands", script="ta.bb(close, 20, 2)"),
]

ML_TEMPLATES: list[ScriptTemplate] = [
    ScriptTemplate(name="ML Logistic Regression", script=LOGISTIC_REGRESSION_TEMPLATE),
    ScriptTemplate(name="ML2 Linear Regression + EMA", script=LINEAR_REGRESSION_EMA_TEMPLATE),
    ScriptTemplate(name="ML3 Bull Bear Power", script=BULL_BEAR_POWER_TEMPLATE),
]

_PREVIEW_LABELS = {
    ScriptKind.LOGISTIC_REGRESSION: "ML: Logistic Regression",
    ScriptKind.LINEAR_REGRESSION_EMA: "ML: Linear Regression + EMA",
    ScriptKind.BULL_BEAR_POWER: "ML: Bull Bear Power",
}


def all_templates() -> list[ScriptTemplate]:
    return INDICATOR_TEMPLATES + ML_TEMPLATES


def get_template(name: str) -> ScriptTemplate:
    """Look up a template by name.

    Raises:
        KeyError: If no template has that name.
    """
    for template in all_templates():
        if template.name == name:
            return template
    raise KeyError(f"Unknown template '{name}'")


def script_preview(script: str) -> str:
    """Short one-line label for a script in a list of active scripts."""
    kind = classify_script(script).kind
    if kind in _PREVIEW_LABELS:
        return _PREVIEW_LABELS[kind]
    # lines are filtered on their trimmed form but joined as written
    lines = [
        line for line in script.split("\n")
        if line.strip() and not line.strip().startswith(COMMENT_PREFIX)
    ]
    return ", ".join(lines)[:PREVIEW_LENGTH]
