"""Unit tests for core.types."""

from datetime import datetime
from decimal import Decimal

import pytest
from tradesim.core.types import Candle, Signal, Side, StrategyOutput, IndicatorOutput, to_decimal


def test_to_decimal_float_goes_through_str():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal(3) == Decimal(3)
    assert to_decimal("1.25") == Decimal("1.25")


def test_candle_coerces_to_decimal():
    c = Candle(time=datetime(2024, 1, 1), open=1.1, high=2, low="0.5", close=1.5, volume=10)
    assert isinstance(c.open, Decimal)
    assert c.open == Decimal("1.1")
    assert c.typical_price == (Decimal(2) + Decimal("0.5") + Decimal("1.5")) / 3


def test_candle_is_immutable():
    c = Candle(time=datetime(2024, 1, 1), open=1, high=1, low=1, close=1, volume=1)
    with pytest.raises(AttributeError):
        c.close = Decimal(2)


def test_signal_to_side():
    assert Signal.BUY.to_side() is Side.BUY
    assert Signal.SELL.to_side() is Side.SELL
    assert Signal.HOLD.to_side() is None


def test_strategy_output_warmup_follows_components():
    t = datetime(2024, 1, 1)
    warm = IndicatorOutput(time=t, signal=Signal.HOLD, warmup=True)
    ready = IndicatorOutput(time=t, signal=Signal.BUY, strength=Decimal(1))
    assert StrategyOutput(t, Signal.HOLD, Decimal(0), (warm, ready)).warmup
    assert not StrategyOutput(t, Signal.BUY, Decimal(1), (ready,)).warmup
