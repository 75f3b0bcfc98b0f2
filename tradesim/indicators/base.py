"""Indicator base: warm-up handling shared by all indicators."""

from __future__ import annotations
from abc import abstractmethod
from datetime import datetime
from typing import Mapping, Optional

from tradesim.core.errors import InsufficientHistory
from tradesim.core.processor import CandleProcessor
from tradesim.core.types import IndicatorOutput, Signal, ZERO, ONE


class Indicator(CandleProcessor[IndicatorOutput]):
    """
    A CandleProcessor that owns only the rolling state its formula needs.
    Output history is not kept; callers retain outputs if they want them.
    """

    def __init__(self, strict: bool = False, name: Optional[str] = None):
        super().__init__()
        self.strict = strict
        self._name = name

    @property
    @abstractmethod
    def required_history(self) -> int:
        """Candles needed before the first meaningful value."""
        pass

    @abstractmethod
    def default_name(self) -> str:
        pass

    def get_name(self) -> str:
        return self._name or self.default_name()

    def _warmup(self, time: datetime, seen: int, graph: Mapping[str, Optional[object]]) -> IndicatorOutput:
        if self.strict:
            raise InsufficientHistory(self.get_name(), self.required_history, seen)
        return IndicatorOutput(time=time, signal=Signal.HOLD, strength=ZERO, graph=dict(graph), warmup=True)

    @staticmethod
    def _output(time: datetime, signal: Signal, graph: Mapping[str, object]) -> IndicatorOutput:
        strength = ZERO if signal is Signal.HOLD else ONE
        return IndicatorOutput(time=time, signal=signal, strength=strength, graph=dict(graph))
