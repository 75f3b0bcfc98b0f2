"""
Performance and risk metrics: realized/unrealized P&L, max drawdown, win rate,
Sharpe-style ratio, profit factor, expectancy, value at risk.
Pure functions over trade history and the position book; nothing is cached.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from tradesim.core.types import ExecutedTrade, OpenPosition, ZERO, ONE

HUNDRED = Decimal(100)
INFINITY = Decimal("Infinity")


@dataclass(frozen=True)
class PerformanceMetrics:
    """Aggregate performance metrics."""
    realized_pnl: Decimal
    unrealized_pnl: Decimal
    equity: Decimal
    total_return_pct: Decimal
    sharpe_ratio: Decimal
    max_drawdown_pct: Decimal
    win_rate: Decimal
    profit_factor: Decimal
    expectancy: Decimal
    exposure: Decimal
    value_at_risk: Decimal
    total_trades: int
    closed_trades: int
    winning_trades: int
    losing_trades: int


def closed_pnls(trades: Iterable[ExecutedTrade]) -> List[Decimal]:
    """Realized P&L of each closing (sell) trade, in order."""
    return [t.realized_pnl for t in trades if t.realized_pnl is not None]


def sharpe_ratio(returns: Sequence[Decimal]) -> Decimal:
    """mean / sample stddev of period returns. No risk-free rate, no annualization."""
    if len(returns) < 2:
        return ZERO
    n = Decimal(len(returns))
    mean = sum(returns) / n
    variance = sum((r - mean) ** 2 for r in returns) / (n - 1)
    std = variance.sqrt()
    if std == 0:
        return ZERO
    return mean / std


def max_drawdown(equity_curve: Sequence[Decimal]) -> Decimal:
    """Max drawdown in percent, as a negative number (e.g. -15 = 15%)."""
    worst = ZERO
    peak: Optional[Decimal] = None
    for value in equity_curve:
        if peak is None or value > peak:
            peak = value
        if peak > 0:
            dd = (value - peak) / peak
            if dd < worst:
                worst = dd
    return worst * HUNDRED


def win_rate(pnls: Sequence[Decimal]) -> Decimal:
    """Fraction of trades with positive P&L."""
    if not pnls:
        return ZERO
    return Decimal(sum(1 for p in pnls if p > 0)) / len(pnls)


def profit_factor(pnls: Sequence[Decimal]) -> Decimal:
    """Gross profit / gross loss. Infinity when there are wins but no losses."""
    wins = sum((p for p in pnls if p > 0), ZERO)
    losses = sum((-p for p in pnls if p < 0), ZERO)
    if losses <= 0:
        return INFINITY if wins > 0 else ZERO
    return wins / losses


def expectancy(pnls: Sequence[Decimal]) -> Decimal:
    """Average P&L per trade."""
    if not pnls:
        return ZERO
    return sum(pnls, ZERO) / len(pnls)


def price_returns(closes: Sequence[Decimal]) -> List[Decimal]:
    return [(cur - prev) / prev for prev, cur in zip(closes, closes[1:]) if prev != 0]


def value_at_risk(closes: Sequence[Decimal], position_value: Decimal, confidence: Decimal = Decimal("0.95")) -> Decimal:
    """
    Historical VaR: the loss on position_value at the (1 - confidence) quantile
    of close-to-close returns. Reported as a positive amount; 0 if the quantile is a gain.
    """
    returns = sorted(price_returns(closes))
    if not returns or position_value <= 0:
        return ZERO
    index = int(len(returns) * (ONE - confidence))
    quantile = returns[min(index, len(returns) - 1)]
    return max(ZERO, -quantile * position_value)


def compute_metrics(
    trades: Sequence[ExecutedTrade],
    positions: Iterable[OpenPosition],
    initial_capital: Decimal,
    available_capital: Decimal,
    price: Decimal,
    closes: Sequence[Decimal] = (),
) -> PerformanceMetrics:
    """
    Full metrics from the trade history and open positions, marked at `price`.
    The drawdown curve is initial capital plus running realized P&L, closed by the
    current mark-to-market equity.
    """
    positions = list(positions)
    pnls = closed_pnls(trades)
    realized = sum(pnls, ZERO)
    position_value = sum((p.market_value(price) for p in positions), ZERO)
    unrealized = sum((p.market_value(price) - p.cost_basis for p in positions), ZERO)
    equity = available_capital + position_value

    curve = [initial_capital]
    for p in pnls:
        curve.append(curve[-1] + p)
    curve.append(equity)

    # Per-trade returns on the capital at risk before each close
    trade_returns = [p / base for p, base in zip(pnls, curve) if base > 0]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]

    return PerformanceMetrics(
        realized_pnl=realized,
        unrealized_pnl=unrealized,
        equity=equity,
        total_return_pct=(equity - initial_capital) / initial_capital * HUNDRED,
        sharpe_ratio=sharpe_ratio(trade_returns),
        max_drawdown_pct=max_drawdown(curve),
        win_rate=win_rate(pnls),
        profit_factor=profit_factor(pnls),
        expectancy=expectancy(pnls),
        exposure=position_value / equity if equity > 0 else ZERO,
        value_at_risk=value_at_risk(closes, position_value),
        total_trades=len(trades),
        closed_trades=len(pnls),
        winning_trades=len(wins),
        losing_trades=len(losses),
    )
