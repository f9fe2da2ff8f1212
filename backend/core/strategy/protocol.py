"""Signal engine protocol defining the interface all script engines implement.

This module provides:
- EngineResult: Standard return type from an engine run
- SignalEngine: Runtime-checkable Protocol that engines must satisfy
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from core.models.candle import CandleHistory
from core.models.series import IndicatorResult, Marker


# ---------------------------------------------------------------------------
# EngineResult: standard return value from compute
# ---------------------------------------------------------------------------
@dataclass
class EngineResult:
    """Result of running an engine over a candle history.

    Attributes:
        indicator: Series bundle to render, or None when history is too short.
        markers: Trade markers in bar order (empty for engines without signals).
    """

    indicator: IndicatorResult | None = None
    markers: list[Marker] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.indicator is None and not self.markers


# ---------------------------------------------------------------------------
# SignalEngine Protocol
# ---------------------------------------------------------------------------
@runtime_checkable
class SignalEngine(Protocol):
    """Protocol that all specialized script engines must implement.

    Engines are stateless between calls: ``compute`` is a pure function of
    the engine's configuration and the candle history it receives.
    """

    @property
    def name(self) -> str:
        """Unique engine identifier (e.g., 'logistic_regression')."""
        ...

    @property
    def version(self) -> str:
        """Engine version string (e.g., '1.0.0')."""
        ...

    @property
    def min_candles(self) -> int:
        """Smallest history length that produces a result."""
        ...

    def compute(self, history: CandleHistory) -> EngineResult:
        """Run the engine over a candle history.

        Args:
            history: Candles sorted ascending by time.

        Returns:
            EngineResult with the series bundle and markers, empty when the
            history is shorter than ``min_candles``.
        """
        ...
