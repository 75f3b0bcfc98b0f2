"""
Common contract for objects that consume candles: indicators and strategies.
Replaying history and feeding live candles go through the same code path.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Generic, Iterable, List, Optional, TypeVar

from tradesim.core.errors import InvalidCandleOrdering
from tradesim.core.types import Candle

OutputT = TypeVar("OutputT")


class CandleProcessor(ABC, Generic[OutputT]):
    """Consumes candles one at a time, strictly ascending by time."""

    def __init__(self) -> None:
        self._last_time: Optional[datetime] = None

    @abstractmethod
    def get_name(self) -> str:
        pass

    @abstractmethod
    def _process(self, candle: Candle) -> OutputT:
        """Update rolling state with one admitted candle and return its output."""
        pass

    def _clear(self) -> None:
        """Drop rolling state. Subclasses with state override."""

    def process_new_candle(self, candle: Candle) -> OutputT:
        if self._last_time is not None and candle.time <= self._last_time:
            raise InvalidCandleOrdering(candle.time, self._last_time)
        self._last_time = candle.time
        return self._process(candle)

    def process_historical_candles(self, candles: Iterable[Candle]) -> List[OutputT]:
        """One output per candle, in order. Continues from the current state."""
        return [self.process_new_candle(c) for c in candles]

    def reset(self) -> None:
        self._last_time = None
        self._clear()
