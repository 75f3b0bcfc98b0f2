"""Shared fixtures: candle builders."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from tradesim.core.types import Candle

START = datetime(2024, 1, 2, 9, 30)


def make_candles(closes, volumes=None, start=START, step=timedelta(minutes=5), spread="0"):
    """Candles with the given closes; high/low = close ± spread, open = close."""
    spread = Decimal(spread)
    volumes = volumes or [1] * len(closes)
    candles = []
    for i, (close, volume) in enumerate(zip(closes, volumes)):
        close = Decimal(str(close))
        candles.append(Candle(
            time=start + step * i,
            open=close,
            high=close + spread,
            low=close - spread,
            close=close,
            volume=Decimal(str(volume)),
        ))
    return candles


@pytest.fixture
def candle_factory():
    return make_candles
