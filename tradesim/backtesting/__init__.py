"""Backtesting runtime: candle-by-candle simulation."""

from tradesim.backtesting.engine import BacktestingRuntime, BacktestResult, BacktestRow

__all__ = ["BacktestingRuntime", "BacktestResult", "BacktestRow"]
