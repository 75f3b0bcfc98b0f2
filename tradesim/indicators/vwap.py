"""
Volume Weighted Average Price.

Cumulative sum(typical_price * volume) / sum(volume), reset at session boundaries
or limited to a rolling window of candles. Price far below VWAP is a BUY, far above a SELL.
"""

from __future__ import annotations
from collections import deque
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Deque, Optional, Tuple

from tradesim.core.errors import ConfigurationError
from tradesim.core.types import Candle, IndicatorOutput, Signal, ZERO, to_decimal
from tradesim.indicators.base import Indicator

DEFAULT_NEUTRAL_BAND = Decimal("0.01")


class SessionReset(str, Enum):
    NONE = "none"
    DAILY = "daily"


class VWAP(Indicator):
    """
    neutral_band: relative deviation from VWAP inside which the signal is HOLD.
    window: if set, only the last `window` candles contribute.
    session: DAILY clears the sums when the candle date changes.
    """

    def __init__(
        self,
        neutral_band: Decimal = DEFAULT_NEUTRAL_BAND,
        window: Optional[int] = None,
        session: SessionReset = SessionReset.NONE,
        strict: bool = False,
        name: Optional[str] = None,
    ):
        super().__init__(strict=strict, name=name)
        neutral_band = to_decimal(neutral_band)
        if neutral_band < 0:
            raise ConfigurationError(f"neutral_band must be >= 0, got {neutral_band}")
        if window is not None and window < 1:
            raise ConfigurationError(f"window must be >= 1, got {window}")
        try:
            session = SessionReset(session)
        except ValueError:
            raise ConfigurationError(f"unknown session reset: {session!r}")
        self.neutral_band = neutral_band
        self.window = window
        self.session = session
        self._terms: Optional[Deque[Tuple[Decimal, Decimal]]] = deque(maxlen=window) if window is not None else None
        self._seen = 0
        self._sum_pv = ZERO
        self._sum_v = ZERO
        self._session_date: Optional[date] = None

    @property
    def required_history(self) -> int:
        return 1

    def default_name(self) -> str:
        return "vwap"

    def _clear(self) -> None:
        if self._terms is not None:
            self._terms.clear()
        self._seen = 0
        self._sum_pv = ZERO
        self._sum_v = ZERO
        self._session_date = None

    def _process(self, candle: Candle) -> IndicatorOutput:
        if self.session is SessionReset.DAILY and candle.time.date() != self._session_date:
            self._clear()
            self._session_date = candle.time.date()

        pv, v = candle.typical_price * candle.volume, candle.volume
        if self._terms is not None:
            # Rolling window: drop the oldest term once full
            if len(self._terms) == self.window:
                old_pv, old_v = self._terms[0]
                self._sum_pv -= old_pv
                self._sum_v -= old_v
            self._terms.append((pv, v))
            self._seen = len(self._terms)
        else:
            self._seen += 1
        self._sum_pv += pv
        self._sum_v += v

        if self._sum_v <= 0:
            return self._warmup(candle.time, self._seen, {"vwap": None, "deviation": None})

        vwap = self._sum_pv / self._sum_v
        if vwap <= 0:
            return self._output(candle.time, Signal.HOLD, {"vwap": vwap, "deviation": None})
        deviation = (candle.close - vwap) / vwap
        if deviation > self.neutral_band:
            signal = Signal.SELL
        elif deviation < -self.neutral_band:
            signal = Signal.BUY
        else:
            signal = Signal.HOLD
        return self._output(candle.time, signal, {"vwap": vwap, "deviation": deviation})
