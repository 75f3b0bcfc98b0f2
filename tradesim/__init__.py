"""tradesim: candle-driven strategy backtesting engine."""

__version__ = "0.5.0"
