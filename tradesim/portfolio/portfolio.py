"""
Portfolio: capital, open positions and executed trade history for one backtest run.

Trades are validated against capital and the position book before anything is
mutated; a rejected trade raises TradeRejected and leaves the portfolio unchanged.
"""

from __future__ import annotations
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from tradesim.analytics.metrics import PerformanceMetrics, compute_metrics
from tradesim.core.errors import ConfigurationError, TradeRejected
from tradesim.core.types import (
    ExecutedTrade,
    FailedTrade,
    OpenPosition,
    PortfolioSnapshot,
    ProposedTrade,
    ReasonCode,
    Side,
    ZERO,
    ONE,
    to_decimal,
)

logger = logging.getLogger("tradesim.portfolio")

BPS = Decimal(10000)


class Portfolio:
    """
    Invariant: available_capital + sum(cost_basis of open positions)
               == initial_capital + realized P&L.
    Capital never goes negative unless allow_leverage is set.
    """

    def __init__(
        self,
        initial_capital: Decimal,
        fee_bps: Decimal = ZERO,
        slippage_bps: Decimal = ZERO,
        allow_leverage: bool = False,
    ):
        initial_capital = to_decimal(initial_capital)
        fee_bps = to_decimal(fee_bps)
        slippage_bps = to_decimal(slippage_bps)
        if initial_capital <= 0:
            raise ConfigurationError(f"initial_capital must be > 0, got {initial_capital}")
        if fee_bps < 0 or slippage_bps < 0:
            raise ConfigurationError("fee_bps and slippage_bps must be >= 0")
        self.initial_capital = initial_capital
        self.fee_rate = fee_bps / BPS
        self.slippage_rate = slippage_bps / BPS
        self.allow_leverage = allow_leverage
        self._capital = initial_capital
        self._positions: Dict[str, OpenPosition] = {}
        self._trades: List[ExecutedTrade] = []

    @property
    def available_capital(self) -> Decimal:
        return self._capital

    @property
    def positions(self) -> Dict[str, OpenPosition]:
        return dict(self._positions)

    @property
    def trades(self) -> List[ExecutedTrade]:
        return list(self._trades)

    def position(self, asset: str) -> Optional[OpenPosition]:
        return self._positions.get(asset)

    @property
    def realized_pnl(self) -> Decimal:
        return sum((t.realized_pnl for t in self._trades if t.realized_pnl is not None), ZERO)

    def unrealized_pnl(self, price: Decimal) -> Decimal:
        return sum((p.market_value(price) - p.cost_basis for p in self._positions.values()), ZERO)

    def position_value(self, price: Decimal) -> Decimal:
        return sum((p.market_value(price) for p in self._positions.values()), ZERO)

    def equity(self, price: Decimal) -> Decimal:
        return self._capital + self.position_value(price)

    def exposure(self, price: Decimal) -> Decimal:
        """Open position value as a fraction of equity."""
        equity = self.equity(price)
        return self.position_value(price) / equity if equity > 0 else ZERO

    def snapshot(self, price: Decimal) -> PortfolioSnapshot:
        """Read-only copy for decision making, with positions marked at `price`."""
        positions = {}
        for asset, p in self._positions.items():
            marked = OpenPosition(p.asset, p.quantity, p.entry_price, p.entry_time, p.cost_basis)
            marked.mark(price)
            positions[asset] = marked
        return PortfolioSnapshot(
            available_capital=self._capital,
            positions=positions,
            equity=self.equity(price),
            exposure=self.exposure(price),
            price=price,
        )

    def _reject(self, trade: ProposedTrade, reason: ReasonCode, message: str) -> TradeRejected:
        return TradeRejected(FailedTrade(trade=trade, reason=reason, message=message))

    def execute(self, trade: ProposedTrade) -> ExecutedTrade:
        """Validate and commit a proposed trade. Raises TradeRejected without side effects."""
        if trade.quantity <= 0 or trade.price <= 0:
            raise self._reject(trade, ReasonCode.INVALID_QUANTITY,
                               f"quantity {trade.quantity} at price {trade.price}")
        if trade.side is Side.BUY:
            executed = self._buy(trade)
        else:
            executed = self._sell(trade)
        self._trades.append(executed)
        logger.info("Executed %s %s %s @ %s (%s) capital=%s",
                    executed.side.value, executed.quantity, executed.asset, executed.price,
                    executed.reason, self._capital)
        return executed

    def _buy(self, trade: ProposedTrade) -> ExecutedTrade:
        fill = trade.price * (ONE + self.slippage_rate)
        gross = fill * trade.quantity
        fee = gross * self.fee_rate
        total = gross + fee
        if total > self._capital and not self.allow_leverage:
            raise self._reject(trade, ReasonCode.INSUFFICIENT_FUNDS,
                               f"cost {total} exceeds available capital {self._capital}")

        self._capital -= total
        position = self._positions.get(trade.asset)
        if position is None:
            self._positions[trade.asset] = OpenPosition(
                asset=trade.asset,
                quantity=trade.quantity,
                entry_price=fill,
                entry_time=trade.time,
                cost_basis=total,
            )
        else:
            new_qty = position.quantity + trade.quantity
            position.entry_price = (position.entry_price * position.quantity + gross) / new_qty
            position.quantity = new_qty
            position.cost_basis += total
        return ExecutedTrade(
            asset=trade.asset, side=Side.BUY, quantity=trade.quantity, price=fill,
            time=trade.time, fee=fee, cash_flow=-total, reason=trade.reason,
        )

    def _sell(self, trade: ProposedTrade) -> ExecutedTrade:
        position = self._positions.get(trade.asset)
        if position is None:
            raise self._reject(trade, ReasonCode.NO_POSITION, f"no open position in {trade.asset}")
        if trade.quantity > position.quantity:
            raise self._reject(trade, ReasonCode.INSUFFICIENT_POSITION,
                               f"selling {trade.quantity} but holding {position.quantity}")

        fill = trade.price * (ONE - self.slippage_rate)
        gross = fill * trade.quantity
        fee = gross * self.fee_rate
        proceeds = gross - fee
        if trade.quantity == position.quantity:
            released = position.cost_basis
        else:
            released = position.cost_basis * trade.quantity / position.quantity
        realized = proceeds - released

        self._capital += proceeds
        if trade.quantity == position.quantity:
            del self._positions[trade.asset]
        else:
            position.quantity -= trade.quantity
            position.cost_basis -= released
        return ExecutedTrade(
            asset=trade.asset, side=Side.SELL, quantity=trade.quantity, price=fill,
            time=trade.time, fee=fee, cash_flow=proceeds, reason=trade.reason,
            realized_pnl=realized,
        )

    def metrics(self, price: Decimal, closes: Sequence[Decimal] = ()) -> PerformanceMetrics:
        """Recomputed from scratch on every call."""
        return compute_metrics(
            trades=self._trades,
            positions=self._positions.values(),
            initial_capital=self.initial_capital,
            available_capital=self._capital,
            price=price,
            closes=closes,
        )
