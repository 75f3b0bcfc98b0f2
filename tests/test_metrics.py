"""Unit tests for analytics.metrics and analytics.monte_carlo."""

from datetime import datetime, timedelta
from decimal import Decimal

from tradesim.analytics.metrics import (
    INFINITY,
    expectancy,
    max_drawdown,
    profit_factor,
    sharpe_ratio,
    value_at_risk,
    win_rate,
)
from tradesim.analytics.monte_carlo import monte_carlo_drawdowns, monte_carlo_equity
from tradesim.core.types import ProposedTrade, Side
from tradesim.portfolio import Portfolio

D = Decimal
T = datetime(2024, 1, 2, 9, 30)


def test_max_drawdown():
    assert max_drawdown([D(100), D(120), D(90), D(130)]) == D(-25)
    assert max_drawdown([D(100), D(110), D(120)]) == 0
    assert max_drawdown([]) == 0


def test_win_rate_profit_factor_expectancy():
    pnls = [D(10), D(-5), D(20), D(-5)]
    assert win_rate(pnls) == D("0.5")
    assert profit_factor(pnls) == D(3)
    assert expectancy(pnls) == D(5)


def test_profit_factor_edges():
    assert profit_factor([D(10), D(5)]) == INFINITY
    assert profit_factor([]) == 0
    assert profit_factor([D(-3)]) == 0


def test_sharpe_ratio():
    assert sharpe_ratio([D("0.01")]) == 0
    assert sharpe_ratio([D("0.01"), D("0.01")]) == 0
    assert sharpe_ratio([D("0.02"), D("-0.01"), D("0.02")]) > 0


def test_value_at_risk():
    closes = [D(100), D(90), D(99), D(99)]
    assert value_at_risk(closes, D(1000)) == D(100)
    assert value_at_risk(closes, D(0)) == 0
    assert value_at_risk([D(100), D(110)], D(1000)) == 0


def test_portfolio_metrics():
    p = Portfolio(D(10000))
    p.execute(ProposedTrade("BTC-USD", Side.BUY, D(10), D(100), T))
    p.execute(ProposedTrade("BTC-USD", Side.SELL, D(10), D(110), T + timedelta(minutes=5)))
    p.execute(ProposedTrade("BTC-USD", Side.BUY, D(5), D(100), T + timedelta(minutes=10)))

    m = p.metrics(D(90))
    assert m.realized_pnl == D(100)
    assert m.unrealized_pnl == D(-50)
    assert m.equity == D(10050)
    assert m.total_return_pct == D("0.5")
    assert m.total_trades == 3
    assert m.closed_trades == 1
    assert m.winning_trades == 1
    assert m.win_rate == 1
    assert m.profit_factor == INFINITY
    assert m.max_drawdown_pct < 0
    assert m.exposure == D(450) / D(10050)


def test_metrics_are_recomputed_not_cached():
    p = Portfolio(D(10000))
    p.execute(ProposedTrade("BTC-USD", Side.BUY, D(10), D(100), T))
    assert p.metrics(D(100)) == p.metrics(D(100))
    before = p.metrics(D(100))
    p.execute(ProposedTrade("BTC-USD", Side.SELL, D(10), D(80), T + timedelta(minutes=5)))
    after = p.metrics(D(80))
    assert before.realized_pnl == 0
    assert after.realized_pnl == D(-200)
    assert after.losing_trades == 1


def test_monte_carlo_equity():
    finals = monte_carlo_equity([D(10), D(-5), D(20)], D(100), n_simulations=50, seed=1)
    assert len(finals) == 50
    assert all(abs(f - 125.0) < 1e-9 for f in finals)
    assert monte_carlo_equity([], D(100)) == []


def test_monte_carlo_drawdowns():
    dds = monte_carlo_drawdowns([D(10), D(-30), D(20)], D(100), n_simulations=20, seed=7)
    assert len(dds) == 20
    assert all(d <= 0 for d in dds)
    assert min(dds) < 0
    assert monte_carlo_drawdowns([D(1)], D(100), n_simulations=3, seed=0) == [0.0, 0.0, 0.0]
