"""
Engine error taxonomy.

Recoverable: InsufficientHistory (warm-up), TradeRejected (capital or risk limit).
Fatal: InvalidCandleOrdering, InvalidCandleData, ConfigurationError, BacktestAborted.
"""

from __future__ import annotations
from datetime import datetime
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from tradesim.core.types import FailedTrade, StrategyOutput


class EngineError(Exception):
    """Base class for all engine errors."""

    recoverable = False


class InsufficientHistory(EngineError):
    """
    Processor has not seen enough candles yet (strict mode only).
    A Strategy attaches the outputs of the indicators that were ready as `partial`.
    """

    recoverable = True

    def __init__(self, name: str, required: int, seen: int, partial: Optional["StrategyOutput"] = None):
        super().__init__(f"{name}: needs {required} candles, has {seen}")
        self.name = name
        self.required = required
        self.seen = seen
        self.partial = partial


class InvalidCandleOrdering(EngineError):
    """Candle timestamps are not strictly ascending."""

    def __init__(self, time: datetime, previous: Optional[datetime], index: Optional[int] = None):
        where = f" at index {index}" if index is not None else ""
        super().__init__(f"candle {time} is not after {previous}{where}")
        self.time = time
        self.previous = previous
        self.index = index


class TradeRejected(EngineError):
    """Portfolio refused a proposed trade. State is unchanged."""

    recoverable = True

    def __init__(self, failed: "FailedTrade"):
        super().__init__(f"{failed.trade.side.value} {failed.trade.quantity} {failed.trade.asset} "
                         f"rejected: {failed.reason.value} {failed.message}".rstrip())
        self.failed = failed


class ConfigurationError(EngineError, ValueError):
    """Malformed configuration value. Raised at construction time."""


class InvalidCandleData(EngineError):
    """Candle with a non-finite or negative price or volume."""

    def __init__(self, time: datetime, field: str, value: object, index: Optional[int] = None):
        where = f" at index {index}" if index is not None else ""
        super().__init__(f"candle {time}{where} has invalid {field}: {value}")
        self.time = time
        self.field = field
        self.value = value
        self.index = index


class BacktestAborted(EngineError):
    """Fatal error inside the run loop, with the candle it happened on."""

    def __init__(self, index: int, time: datetime, cause: Exception):
        super().__init__(f"backtest aborted at candle {index} ({time}): {cause}")
        self.index = index
        self.time = time
        self.cause = cause
