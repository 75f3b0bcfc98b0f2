"""Portfolio: execution and accounting."""

from tradesim.portfolio.portfolio import Portfolio

__all__ = ["Portfolio"]
