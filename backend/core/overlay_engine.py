"""Overlay engine: runs a batch of indicator scripts over a candle history.

This module is pure business logic with no I/O dependencies. Every call
recomputes the whole batch from its inputs; nothing is cached between
calls.
"""

import logging
from typing import Iterable, Sequence

from pydantic import BaseModel, Field

from core.indicators import IndicatorCalculator
from core.models import Candle, CandleHistory, IndicatorResult, Marker
from core.script import ScriptKind, classify_script
from core.strategy import EngineResult, create_engine

logger = logging.getLogger(__name__)


class OverlayBundle(BaseModel):
    """Aggregate output of one batch of scripts.

    Attributes:
        results: Series bundles in script order.
        markers: Markers from every script, sorted ascending by time.
        next_color_index: Default-color counter after this batch.
    """

    results: list[IndicatorResult] = Field(default_factory=list)
    markers: list[Marker] = Field(default_factory=list)
    next_color_index: int = 0


class OverlayEngine:
    """Routes each script to exactly one calculator and aggregates results."""

    def __init__(self, calculator: IndicatorCalculator | None = None):
        self.calculator = calculator or IndicatorCalculator()

    def _run_generic(
        self,
        indicators: Iterable,
        history: CandleHistory,
        color_index: int,
    ) -> tuple[list[IndicatorResult], int]:
        results = []
        for indicator in indicators:
            result = self.calculator.calculate(indicator, history, color_index)
            color_index += 1
            if result is not None:
                results.append(result)
        return results, color_index

    def compute(
        self,
        history: CandleHistory | Sequence[Candle],
        scripts: Sequence[str],
        color_index: int = 0,
    ) -> OverlayBundle:
        """
        Compute overlays and markers for every script.

        Args:
            history: Candles sorted ascending by time
            scripts: Script texts in display order
            color_index: Starting value of the batch-wide default-color counter

        Returns:
            OverlayBundle with results in script order and time-sorted markers
        """
        if not isinstance(history, CandleHistory):
            history = CandleHistory.from_candles(history)

        results: list[IndicatorResult] = []
        markers: list[Marker] = []

        for position, script in enumerate(scripts):
            classified = classify_script(script)
            logger.debug("Script %d classified as %s", position, classified.kind.value)

            if classified.kind == ScriptKind.GENERIC:
                generic_results, color_index = self._run_generic(
                    classified.indicators, history, color_index
                )
                results.extend(generic_results)
                continue

            engine = create_engine(classified.kind.value, config=classified.config)
            outcome: EngineResult = engine.compute(history)
            if outcome.is_empty:
                logger.debug(
                    "Script %d (%s) produced no output for %d candles",
                    position, engine.name, len(history),
                )
                continue

            if outcome.indicator is not None:
                results.append(outcome.indicator)
            markers.extend(outcome.markers)

        # Stable sort keeps per-bar marker order within and across scripts
        markers.sort(key=lambda m: m.time)

        logger.debug(
            "Computed %d results and %d markers from %d scripts over %d candles",
            len(results), len(markers), len(scripts), len(history),
        )
        return OverlayBundle(results=results, markers=markers, next_color_index=color_index)


def compute_overlays(
    history: CandleHistory | Sequence[Candle],
    scripts: Sequence[str],
    color_index: int = 0,
) -> OverlayBundle:
    """Compute a batch of scripts with a default OverlayEngine."""
    return OverlayEngine().compute(history, scripts, color_index)
