"""
Market data adapter: OHLCV DataFrames and CSV files to ordered candle sequences.
The engine requires strictly ascending, duplicate-free timestamps; gaps are only reported.
"""

from __future__ import annotations
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

import pandas as pd

from tradesim.core.errors import InvalidCandleData, InvalidCandleOrdering
from tradesim.core.types import Candle, to_decimal
from tradesim.utils.timeframes import timeframe_delta

logger = logging.getLogger("tradesim.data")

COLUMNS = ["time", "open", "high", "low", "close", "volume"]
OHLCV_FIELDS = COLUMNS[1:]

DateLike = Union[str, datetime, None]


def candles_from_frame(df: pd.DataFrame) -> List[Candle]:
    """Convert an OHLCV DataFrame (columns: time, open, high, low, close, volume) to candles."""
    missing = [c for c in COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"candle frame is missing columns: {missing}")
    times = pd.to_datetime(df["time"])
    candles = []
    for time, row in zip(times, df[COLUMNS[1:]].itertuples(index=False)):
        candles.append(Candle(
            time=time.to_pydatetime(),
            open=to_decimal(str(row.open)),
            high=to_decimal(str(row.high)),
            low=to_decimal(str(row.low)),
            close=to_decimal(str(row.close)),
            volume=to_decimal(str(row.volume)),
        ))
    return candles


def load_candles_csv(path: Path) -> List[Candle]:
    """Read candles from CSV. Prices are read as strings so no float rounding creeps in."""
    df = pd.read_csv(path, dtype={c: str for c in COLUMNS[1:]})
    logger.info("Loaded %d candles from %s", len(df), path)
    return candles_from_frame(df)


def validate_candles(candles: Sequence[Candle]) -> None:
    """
    Raise at the first corrupt candle: InvalidCandleData for a NaN, infinite or
    negative OHLCV value, InvalidCandleOrdering for a duplicate or out-of-order timestamp.
    """
    for i, candle in enumerate(candles):
        for field in OHLCV_FIELDS:
            value = getattr(candle, field)
            if not value.is_finite() or value < 0:
                raise InvalidCandleData(candle.time, field, value, index=i)
        if i > 0 and candle.time <= candles[i - 1].time:
            raise InvalidCandleOrdering(candle.time, candles[i - 1].time, index=i)


def _parse_bound(value: DateLike) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return pd.Timestamp(value).to_pydatetime()


def trim_candles(candles: Sequence[Candle], start: DateLike = None, end: DateLike = None) -> List[Candle]:
    """Keep candles with start <= time <= end. Bounds are inclusive; None means open."""
    lo, hi = _parse_bound(start), _parse_bound(end)
    return [c for c in candles if (lo is None or c.time >= lo) and (hi is None or c.time <= hi)]


def find_gaps(candles: Sequence[Candle], timeframe: str) -> List[int]:
    """Indices of candles that follow a missing interval. Logged, not repaired."""
    step = timeframe_delta(timeframe)
    gaps = [i for i in range(1, len(candles)) if candles[i].time - candles[i - 1].time > step]
    if gaps:
        logger.warning("%d gaps in candle data at %s interval (first at %s)", len(gaps), timeframe,
                       candles[gaps[0]].time)
    return gaps
