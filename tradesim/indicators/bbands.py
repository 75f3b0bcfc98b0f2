"""
Bollinger Bands over a trailing window of closes.
SELL at or above the upper band, BUY at or below the lower band.
"""

from __future__ import annotations
from collections import deque
from decimal import Decimal
from typing import Deque, Optional

from tradesim.core.errors import ConfigurationError
from tradesim.core.types import Candle, IndicatorOutput, Signal, to_decimal
from tradesim.indicators.base import Indicator

DEFAULT_PERIOD = 20
DEFAULT_MULTIPLIER = Decimal(2)


class BollingerBands(Indicator):
    """mean ± multiplier * population stddev of the last `period` closes."""

    def __init__(
        self,
        period: int = DEFAULT_PERIOD,
        multiplier: Decimal = DEFAULT_MULTIPLIER,
        strict: bool = False,
        name: Optional[str] = None,
    ):
        super().__init__(strict=strict, name=name)
        if period < 2:
            raise ConfigurationError(f"period must be >= 2, got {period}")
        multiplier = to_decimal(multiplier)
        if multiplier < 0:
            raise ConfigurationError(f"multiplier must be >= 0, got {multiplier}")
        self.period = period
        self.multiplier = multiplier
        self._closes: Deque[Decimal] = deque(maxlen=period)

    @property
    def required_history(self) -> int:
        return self.period

    def default_name(self) -> str:
        return "bbands"

    def _clear(self) -> None:
        self._closes.clear()

    def _process(self, candle: Candle) -> IndicatorOutput:
        self._closes.append(candle.close)
        n = len(self._closes)
        mean = sum(self._closes) / n
        if n < self.period:
            return self._warmup(candle.time, n, {"lower": None, "middle": mean, "upper": None})

        # Recompute over the window; exact Decimal sums, no incremental variance drift
        variance = sum((c - mean) ** 2 for c in self._closes) / n
        width = self.multiplier * variance.sqrt()
        lower, upper = mean - width, mean + width
        graph = {"lower": lower, "middle": mean, "upper": upper}

        if upper == lower:
            signal = Signal.HOLD  # zero variance: band collapsed
        elif candle.close >= upper:
            signal = Signal.SELL
        elif candle.close <= lower:
            signal = Signal.BUY
        else:
            signal = Signal.HOLD
        return self._output(candle.time, signal, graph)
