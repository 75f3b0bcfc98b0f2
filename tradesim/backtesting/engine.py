"""
Backtesting runtime: replays candles through strategy, position manager and portfolio.
Strictly sequential; each candle's portfolio mutation completes before the next candle.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence, Union

import pandas as pd

from tradesim.analytics.metrics import PerformanceMetrics
from tradesim.core.errors import BacktestAborted, InsufficientHistory, TradeRejected
from tradesim.core.types import Candle, ExecutedTrade, FailedTrade, Signal, StrategyOutput, ZERO
from tradesim.data.market_data import trim_candles, validate_candles
from tradesim.portfolio.portfolio import Portfolio
from tradesim.risk.manager import Decision, PositionManager
from tradesim.strategies.strategy import Strategy, graph_frame

logger = logging.getLogger("tradesim.backtest")


@dataclass(frozen=True)
class BacktestRow:
    """Everything that happened on one candle."""
    candle: Candle
    output: StrategyOutput
    decision: Decision
    executed: Optional[ExecutedTrade]
    equity: Decimal


@dataclass
class BacktestResult:
    """Backtest output: per-candle rows, trades, rejections and metrics."""
    asset: str
    indicator_names: List[str]
    rows: List[BacktestRow] = field(default_factory=list)
    trades: List[ExecutedTrade] = field(default_factory=list)
    failed_trades: List[FailedTrade] = field(default_factory=list)
    metrics: Optional[PerformanceMetrics] = None
    warmup_count: int = 0
    rejection_count: int = 0

    @property
    def equity_curve(self) -> List[Decimal]:
        return [r.equity for r in self.rows]

    def to_frame(self) -> pd.DataFrame:
        """One row per processed candle: OHLCV, indicator graphs and signals, trade, equity."""
        if not self.rows:
            return pd.DataFrame()
        candles = pd.DataFrame([
            {"time": r.candle.time, "open": r.candle.open, "high": r.candle.high, "low": r.candle.low,
             "close": r.candle.close, "volume": r.candle.volume}
            for r in self.rows
        ]).set_index("time")
        graphs = graph_frame(self.indicator_names, [r.output for r in self.rows])
        trades = pd.DataFrame([
            {"time": r.candle.time,
             "trade_side": r.executed.side.value if r.executed else None,
             "trade_quantity": r.executed.quantity if r.executed else None,
             "trade_price": r.executed.price if r.executed else None,
             "rejection": r.decision.rejection.value if r.decision.rejection else None,
             "equity": r.equity}
            for r in self.rows
        ]).set_index("time")
        return candles.join(graphs).join(trades)

    def trades_frame(self) -> pd.DataFrame:
        columns = ["time", "asset", "side", "quantity", "price", "fee", "cash_flow", "realized_pnl", "reason"]
        return pd.DataFrame([
            {"time": t.time, "asset": t.asset, "side": t.side.value, "quantity": t.quantity, "price": t.price,
             "fee": t.fee, "cash_flow": t.cash_flow, "realized_pnl": t.realized_pnl, "reason": t.reason}
            for t in self.trades
        ], columns=columns)


class BacktestingRuntime:
    """
    Owns the trimmed candle sequence, strategy, position manager and portfolio.
    Per candle: strategy -> position manager -> portfolio, then the next candle.
    """

    def __init__(
        self,
        candles: Sequence[Candle],
        strategy: Strategy,
        position_manager: PositionManager,
        portfolio: Portfolio,
        asset: str,
        start: Union[str, datetime, None] = None,
        end: Union[str, datetime, None] = None,
    ):
        self.candles = trim_candles(candles, start, end)
        validate_candles(self.candles)
        self.strategy = strategy
        self.position_manager = position_manager
        self.portfolio = portfolio
        self.asset = asset

    def _process(self, candle: Candle, result: BacktestResult) -> StrategyOutput:
        try:
            output = self.strategy.process_new_candle(candle)
        except InsufficientHistory as e:
            logger.debug("Warm-up at %s: %s", candle.time, e)
            result.warmup_count += 1
            if e.partial is not None:
                return e.partial
            return StrategyOutput(time=candle.time, signal=Signal.HOLD, strength=ZERO)
        if output.warmup:
            result.warmup_count += 1
        return output

    def run(self) -> BacktestResult:
        """Run the full candle sequence. Raises BacktestAborted on a fatal error."""
        result = BacktestResult(asset=self.asset, indicator_names=self.strategy.indicator_names())
        logger.info("Backtesting %s over %d candles", self.asset, len(self.candles))

        for i, candle in enumerate(self.candles):
            try:
                output = self._process(candle, result)
                snapshot = self.portfolio.snapshot(candle.close)
                decision = self.position_manager.decide(self.asset, output, candle, snapshot)
                if decision.is_rejected:
                    result.rejection_count += 1

                executed = None
                if decision.trade is not None:
                    try:
                        executed = self.portfolio.execute(decision.trade)
                        result.trades.append(executed)
                    except TradeRejected as e:
                        logger.warning("Trade rejected at %s: %s", candle.time, e)
                        result.failed_trades.append(e.failed)
                        result.rejection_count += 1
            except Exception as e:
                logger.error("Fatal error at candle %d (%s): %r", i, candle.time, e)
                raise BacktestAborted(i, candle.time, e) from e

            result.rows.append(BacktestRow(
                candle=candle,
                output=output,
                decision=decision,
                executed=executed,
                equity=self.portfolio.equity(candle.close),
            ))

        if self.candles:
            closes = [c.close for c in self.candles]
            result.metrics = self.portfolio.metrics(closes[-1], closes)
        logger.info("Backtest done: %d trades, %d rejections, %d warm-up candles",
                    len(result.trades), result.rejection_count, result.warmup_count)
        return result
