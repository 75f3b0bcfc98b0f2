"""Data: candle ingestion, trimming and ordering checks."""

from tradesim.data.market_data import (
    candles_from_frame,
    load_candles_csv,
    validate_candles,
    trim_candles,
    find_gaps,
)

__all__ = ["candles_from_frame", "load_candles_csv", "validate_candles", "trim_candles", "find_gaps"]
