"""
Core data types: candles, signals, indicator outputs, trades and positions.
All prices and quantities are Decimal.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

ZERO = Decimal(0)
ONE = Decimal(1)


def to_decimal(value: Any) -> Decimal:
    """Coerce a number to Decimal. Floats go through str() so 0.1 stays 0.1."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


class Signal(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"

    def to_side(self) -> Optional["Side"]:
        if self is Signal.BUY:
            return Side.BUY
        if self is Signal.SELL:
            return Side.SELL
        return None


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class ReasonCode(str, Enum):
    """Why a proposed trade was not acted on."""
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NO_POSITION = "no_position"
    INSUFFICIENT_POSITION = "insufficient_position"
    INVALID_QUANTITY = "invalid_quantity"
    MAX_POSITION_SIZE = "max_position_size"
    RISK_TOLERANCE = "risk_tolerance"
    WEAK_SIGNAL = "weak_signal"
    VAR_LIMIT = "var_limit"
    BELOW_MIN_PROFIT = "below_min_profit"


@dataclass(frozen=True)
class Candle:
    """OHLCV candle."""
    time: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal

    def __post_init__(self) -> None:
        for name in ("open", "high", "low", "close", "volume"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @property
    def typical_price(self) -> Decimal:
        return (self.high + self.low + self.close) / 3


@dataclass(frozen=True)
class IndicatorOutput:
    """Graph values and derived signal of one indicator for one candle."""
    time: datetime
    signal: Signal
    strength: Decimal = ZERO
    graph: Mapping[str, Optional[Decimal]] = field(default_factory=dict)
    warmup: bool = False


@dataclass(frozen=True)
class StrategyOutput:
    """Combined signal of a strategy plus the component outputs it was reduced from."""
    time: datetime
    signal: Signal
    strength: Decimal
    outputs: Tuple[IndicatorOutput, ...] = ()

    @property
    def warmup(self) -> bool:
        return any(o.warmup for o in self.outputs)


@dataclass(frozen=True)
class ProposedTrade:
    """Candidate trade produced by the position manager; not yet committed."""
    asset: str
    side: Side
    quantity: Decimal
    price: Decimal
    time: datetime
    reason: str = "signal"  # "signal" | "stop_loss" | "take_profit"

    @property
    def cost(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class ExecutedTrade:
    """Trade accepted by the portfolio. cash_flow is the signed change to capital."""
    asset: str
    side: Side
    quantity: Decimal
    price: Decimal
    time: datetime
    fee: Decimal
    cash_flow: Decimal
    reason: str = "signal"
    realized_pnl: Optional[Decimal] = None

    @property
    def cost(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class FailedTrade:
    """Proposal that was rejected, kept for reporting."""
    trade: ProposedTrade
    reason: ReasonCode
    message: str = ""


@dataclass
class OpenPosition:
    """Open long exposure in one asset. Exists only while quantity > 0."""
    asset: str
    quantity: Decimal
    entry_price: Decimal
    entry_time: datetime
    cost_basis: Decimal
    unrealized_pnl: Decimal = ZERO

    def market_value(self, price: Decimal) -> Decimal:
        return self.quantity * price

    def mark(self, price: Decimal) -> Decimal:
        self.unrealized_pnl = self.market_value(price) - self.cost_basis
        return self.unrealized_pnl


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Read-only view of the portfolio at one price, handed to the position manager."""
    available_capital: Decimal
    positions: Mapping[str, OpenPosition]
    equity: Decimal
    exposure: Decimal
    price: Decimal

    def position(self, asset: str) -> Optional[OpenPosition]:
        return self.positions.get(asset)
