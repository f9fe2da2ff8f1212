"""Indicator output and trade marker models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class IndicatorKind(str, Enum):
    """Classical indicator functions understood by the generic parser."""

    SMA = "sma"
    EMA = "ema"
    RSI = "rsi"
    MACD = "macd"
    BB = "bb"


class ResultKind(str, Enum):
    """How a result's lines are meant to be presented."""

    LINE = "line"
    HISTOGRAM = "histogram"
    BAND = "band"


class MarkerType(str, Enum):
    """Trade marker kinds."""

    BUY = "buy"  # Enter long
    SELL = "sell"  # Enter short
    STOP_BUY = "stopBuy"  # Exit long
    STOP_SELL = "stopSell"  # Exit short


class IndicatorDescriptor(BaseModel):
    """One indicator definition parsed from a generic script line."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: IndicatorKind
    params: dict[str, float]
    color: str | None = None


class SeriesPoint(BaseModel):
    """A single (time, value) sample of a line series."""

    model_config = ConfigDict(frozen=True)

    time: int
    value: float


class LineSeries(BaseModel):
    """A renderable line: label, color and points aligned to candle times."""

    label: str
    color: str
    points: list[SeriesPoint] = Field(default_factory=list)
    width: int = 1
    style: int | None = None


class IndicatorResult(BaseModel):
    """Named bundle of line series produced by one indicator or engine."""

    name: str
    kind: ResultKind = ResultKind.LINE
    lines: list[LineSeries] = Field(default_factory=list)


class Marker(BaseModel):
    """Discrete trade-signal annotation."""

    model_config = ConfigDict(frozen=True)

    time: int
    type: MarkerType
    price: float
