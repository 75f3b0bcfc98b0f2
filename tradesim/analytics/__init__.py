"""Analytics: performance metrics (Sharpe, MDD, win rate, VaR, etc.) and Monte Carlo."""

from tradesim.analytics.metrics import (
    PerformanceMetrics,
    compute_metrics,
    closed_pnls,
    sharpe_ratio,
    max_drawdown,
    win_rate,
    profit_factor,
    expectancy,
    value_at_risk,
)
from tradesim.analytics.monte_carlo import monte_carlo_equity, monte_carlo_drawdowns

__all__ = [
    "PerformanceMetrics",
    "compute_metrics",
    "closed_pnls",
    "sharpe_ratio",
    "max_drawdown",
    "win_rate",
    "profit_factor",
    "expectancy",
    "value_at_risk",
    "monte_carlo_equity",
    "monte_carlo_drawdowns",
]
