"""
Position manager: turns a combined signal plus a portfolio snapshot into zero or one
proposed trade.

Per asset the implicit states are Flat and Long. Exits (stop-loss, take-profit,
unrealized P&L limit, VaR reduction) take priority over any signal. Risk breaches
are reported, never fatal.
"""

from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass
from decimal import Decimal, ROUND_UP
from typing import Deque, Optional

from tradesim.analytics.metrics import value_at_risk
from tradesim.core.config import PositionManagerConfig
from tradesim.core.types import (
    Candle,
    OpenPosition,
    PortfolioSnapshot,
    ProposedTrade,
    ReasonCode,
    Side,
    Signal,
    StrategyOutput,
    ONE,
    ZERO,
)
from tradesim.utils.quantity import round_quantity

logger = logging.getLogger("tradesim.risk")


@dataclass(frozen=True)
class Decision:
    """Result of a decision: a trade, a rejection, or nothing."""
    trade: Optional[ProposedTrade] = None
    rejection: Optional[ReasonCode] = None
    reason: str = ""

    @property
    def is_trade(self) -> bool:
        return self.trade is not None

    @property
    def is_rejected(self) -> bool:
        return self.rejection is not None


class PositionManager:
    """
    Enforces: exits, minimum signal strength, minimum sell profit,
    max position size (clip or reject), VaR limit and risk tolerance on projected exposure.

    Keeps the last `var_window` closes it was shown for the VaR rules, so feed it
    every candle in order and call reset() between runs.
    """

    def __init__(self, config: PositionManagerConfig):
        self.config = config
        self._closes: Deque[Decimal] = deque(maxlen=config.var_window)

    def reset(self) -> None:
        self._closes.clear()

    def decide(
        self,
        asset: str,
        output: StrategyOutput,
        candle: Candle,
        snapshot: PortfolioSnapshot,
    ) -> Decision:
        self._closes.append(candle.close)
        position = snapshot.position(asset)
        price = candle.close

        if position is not None:
            exit_decision = self.check_exit(position, candle)
            if exit_decision is not None:
                return exit_decision

        if output.signal is Signal.HOLD:
            return Decision(reason="hold")

        if output.signal is Signal.SELL and position is None:
            return Decision(reason="flat, nothing to sell")

        if output.strength < self.config.min_signal_strength:
            logger.debug("Ignoring %s signal for %s: strength %s < %s", output.signal.value, asset,
                         output.strength, self.config.min_signal_strength)
            return Decision(rejection=ReasonCode.WEAK_SIGNAL,
                            reason=f"strength {output.strength} < {self.config.min_signal_strength}")

        if output.signal is Signal.SELL:
            return self.process_sell(position, candle)

        return self.process_buy(asset, candle, snapshot, position)

    def _sell(self, position: OpenPosition, candle: Candle, quantity: Decimal, reason: str) -> Decision:
        return Decision(trade=ProposedTrade(position.asset, Side.SELL, quantity, candle.close, candle.time, reason))

    def current_var(self, position_value: Decimal) -> Decimal:
        return value_at_risk(list(self._closes), position_value, self.config.var_confidence)

    def check_exit(self, position: OpenPosition, candle: Candle) -> Optional[Decision]:
        """Synthesize a SELL when a stop, target, P&L limit or VaR limit is crossed."""
        price = candle.close
        if self.config.stop_loss_pct > 0:
            stop = position.entry_price * (ONE - self.config.stop_loss_pct)
            if price <= stop:
                logger.info("Stop-loss triggered for %s: close %s <= %s", position.asset, price, stop)
                return self._sell(position, candle, position.quantity, "stop_loss")
        if self.config.take_profit_pct > 0:
            target = position.entry_price * (ONE + self.config.take_profit_pct)
            if price >= target:
                logger.info("Take-profit triggered for %s: close %s >= %s", position.asset, price, target)
                return self._sell(position, candle, position.quantity, "take_profit")
        if self.config.unrealized_pnl_limit is not None:
            pnl = position.market_value(price) - position.cost_basis
            if pnl >= self.config.unrealized_pnl_limit:
                logger.info("Unrealized P&L limit hit for %s: %s >= %s", position.asset, pnl,
                            self.config.unrealized_pnl_limit)
                return self._sell(position, candle, position.quantity, "pnl_limit")
        if self.config.var_limit is not None:
            var = self.current_var(position.market_value(price))
            if var > self.config.var_limit:
                # VaR scales with position value: sell the fraction that brings it back to the limit
                excess = position.quantity * (var - self.config.var_limit) / var
                qty = min(position.quantity, round_quantity(excess, self.config.quantity_step, rounding=ROUND_UP))
                logger.warning("VaR %s for %s exceeds limit %s, reducing by %s", var, position.asset,
                               self.config.var_limit, qty)
                return self._sell(position, candle, qty, "risk_reduction")
        return None

    def process_sell(self, position: OpenPosition, candle: Candle) -> Decision:
        """Full close, unless the sale would not clear min_profit."""
        if self.config.min_profit is not None:
            profit = position.market_value(candle.close) - position.cost_basis
            if profit <= self.config.min_profit:
                logger.debug("Holding %s: profit %s <= min profit %s", position.asset, profit,
                             self.config.min_profit)
                return Decision(rejection=ReasonCode.BELOW_MIN_PROFIT,
                                reason=f"profit {profit} <= {self.config.min_profit}")
        return self._sell(position, candle, position.quantity, "signal")

    def position_size(self, price: Decimal, snapshot: PortfolioSnapshot) -> Decimal:
        """Desired order size before limits: fixed quantity or a fraction of available capital."""
        if self.config.trade_quantity is not None:
            qty = self.config.trade_quantity
        else:
            qty = snapshot.available_capital * self.config.capital_fraction / price
        return round_quantity(qty, self.config.quantity_step)

    def process_buy(
        self,
        asset: str,
        candle: Candle,
        snapshot: PortfolioSnapshot,
        position: Optional[OpenPosition],
    ) -> Decision:
        price = candle.close
        held = position.quantity if position is not None else ZERO
        current_value = position.market_value(price) if position is not None else ZERO
        qty = self.position_size(price, snapshot)
        if qty <= 0:
            return Decision(rejection=ReasonCode.INVALID_QUANTITY, reason="quantity rounded to 0")

        room = self.config.max_position_size - held
        if room <= 0:
            logger.warning("Buy for %s rejected: holding %s, max position size %s", asset, held,
                           self.config.max_position_size)
            return Decision(rejection=ReasonCode.MAX_POSITION_SIZE,
                            reason=f"position {held} at max {self.config.max_position_size}")
        if qty > room:
            clipped = round_quantity(room, self.config.quantity_step)
            logger.warning("Buy for %s clipped from %s to %s by max position size %s", asset, qty, clipped,
                           self.config.max_position_size)
            qty = clipped
            if qty <= 0:
                return Decision(rejection=ReasonCode.MAX_POSITION_SIZE, reason="no room below max position size")

        if self.config.var_limit is not None:
            loss_per_value = self.current_var(ONE)
            if loss_per_value > 0:
                room_value = self.config.var_limit / loss_per_value - current_value
                allowed = round_quantity(room_value / price, self.config.quantity_step) if room_value > 0 else ZERO
                if allowed <= 0:
                    logger.warning("Buy for %s rejected: VaR limit %s reached", asset, self.config.var_limit)
                    return Decision(rejection=ReasonCode.VAR_LIMIT,
                                    reason=f"no VaR capacity below {self.config.var_limit}")
                if qty > allowed:
                    logger.warning("Buy for %s clipped from %s to %s by VaR limit %s", asset, qty, allowed,
                                   self.config.var_limit)
                    qty = allowed

        if snapshot.equity <= 0:
            logger.warning("Buy for %s rejected: equity %s", asset, snapshot.equity)
            return Decision(rejection=ReasonCode.RISK_TOLERANCE, reason="non-positive equity")
        projected = (current_value + qty * price) / snapshot.equity
        if projected > self.config.risk_tolerance:
            logger.warning("Buy for %s rejected: projected exposure %s > risk tolerance %s", asset,
                           projected, self.config.risk_tolerance)
            return Decision(rejection=ReasonCode.RISK_TOLERANCE,
                            reason=f"projected exposure {projected} > {self.config.risk_tolerance}")

        return Decision(trade=ProposedTrade(asset, Side.BUY, qty, price, candle.time, "signal"))
