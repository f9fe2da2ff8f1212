"""Data models."""

from core.models.candle import Candle, CandleHistory
from core.models.series import (
    IndicatorDescriptor,
    IndicatorKind,
    IndicatorResult,
    LineSeries,
    Marker,
    MarkerType,
    ResultKind,
    SeriesPoint,
)

__all__ = [
    "Candle",
    "CandleHistory",
    "IndicatorDescriptor",
    "IndicatorKind",
    "IndicatorResult",
    "LineSeries",
    "Marker",
    "MarkerType",
    "ResultKind",
    "SeriesPoint",
]
