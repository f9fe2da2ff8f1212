"""Candle (OHLCV bar) data models."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Candle(BaseModel):
    """Candle (OHLCV bar) data model.

    ``time`` is a unix timestamp in seconds.
    """

    model_config = ConfigDict(frozen=True)

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float | None = None


class CandleHistory(BaseModel):
    """Ordered, immutable candle sequence that indicators are computed over.

    Times must be strictly increasing; a history violating that is rejected
    at construction time.
    """

    model_config = ConfigDict(frozen=True)

    candles: list[Candle] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_order(self):
        for prev, cur in zip(self.candles, self.candles[1:]):
            if cur.time <= prev.time:
                raise ValueError(
                    f"Candle times must be strictly increasing: {prev.time} then {cur.time}"
                )
        return self

    @classmethod
    def from_candles(cls, candles) -> "CandleHistory":
        """Build a history from any iterable of Candle objects."""
        return cls(candles=list(candles))

    def get_times(self) -> list[int]:
        """Get list of candle times."""
        return [c.time for c in self.candles]

    def get_closes(self) -> list[float]:
        """Get list of close prices."""
        return [c.close for c in self.candles]

    def __len__(self) -> int:
        return len(self.candles)

    def __getitem__(self, index: int) -> Candle:
        return self.candles[index]
