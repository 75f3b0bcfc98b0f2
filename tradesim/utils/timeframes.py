"""Timeframe strings ('30s', '5m', '4h', '1d', '1w') as candle intervals."""

from datetime import timedelta

_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}


def timeframe_delta(tf: str) -> timedelta:
    """Candle interval for a timeframe string."""
    tf = tf.strip().lower()
    unit, count = tf[-1:], tf[:-1]
    if unit not in _UNIT_SECONDS or not count.isdigit() or int(count) <= 0:
        raise ValueError(f"Unsupported timeframe: {tf}")
    return timedelta(seconds=int(count) * _UNIT_SECONDS[unit])
