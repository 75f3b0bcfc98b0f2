"""Utils: timeframes, quantity rounding."""

from tradesim.utils.quantity import round_quantity
from tradesim.utils.timeframes import timeframe_delta

__all__ = ["round_quantity", "timeframe_delta"]
