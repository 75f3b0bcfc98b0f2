"""Unit tests for indicators.bbands."""

from decimal import Decimal

import pytest
from tradesim.core.errors import ConfigurationError, InsufficientHistory, InvalidCandleOrdering
from tradesim.core.types import Signal
from tradesim.indicators.bbands import BollingerBands


def test_defaults():
    bb = BollingerBands()
    assert bb.period == 20
    assert bb.multiplier == Decimal(2)
    assert bb.get_name() == "bbands"
    assert BollingerBands(name="bb_fast").get_name() == "bb_fast"


@pytest.mark.parametrize("period,multiplier", [(1, 2), (0, 2), (-5, 2), (20, -1)])
def test_invalid_parameters(period, multiplier):
    with pytest.raises(ConfigurationError):
        BollingerBands(period=period, multiplier=multiplier)


def test_warmup_is_hold_for_short_sequences(candle_factory):
    bb = BollingerBands(period=5)
    outputs = bb.process_historical_candles(candle_factory([1, 2, 3, 4]))
    assert len(outputs) == 4
    assert all(o.signal is Signal.HOLD and o.warmup for o in outputs)
    assert outputs[1].graph["middle"] == Decimal("1.5")
    assert outputs[1].graph["upper"] is None


def test_strict_mode_raises_during_warmup(candle_factory):
    bb = BollingerBands(period=3, strict=True)
    candles = candle_factory([1, 2, 3])
    with pytest.raises(InsufficientHistory) as exc:
        bb.process_new_candle(candles[0])
    assert exc.value.required == 3
    assert exc.value.seen == 1


def test_flat_prices_are_hold_after_warmup(candle_factory):
    bb = BollingerBands(period=5)
    outputs = bb.process_historical_candles(candle_factory([10] * 12))
    assert all(o.signal is Signal.HOLD for o in outputs)
    ready = outputs[5:]
    assert all(not o.warmup for o in ready)
    assert all(o.graph["upper"] == o.graph["lower"] == Decimal(10) for o in ready)


def test_band_values(candle_factory):
    # closes 2, 4, 4, 4, 5, 5, 7, 9: mean 5, population stddev 2
    bb = BollingerBands(period=8, multiplier=Decimal(2))
    out = bb.process_historical_candles(candle_factory([2, 4, 4, 4, 5, 5, 7, 9]))[-1]
    assert out.graph["middle"] == Decimal(5)
    assert out.graph["upper"] == Decimal(9)
    assert out.graph["lower"] == Decimal(1)
    assert out.signal is Signal.SELL  # close 9 touches the upper band


def test_buy_below_lower_band(candle_factory):
    bb = BollingerBands(period=5, multiplier=Decimal(1))
    out = bb.process_historical_candles(candle_factory([10, 10, 10, 10, 5]))[-1]
    assert out.signal is Signal.BUY
    assert out.strength == Decimal(1)


def test_window_rolls(candle_factory):
    bb = BollingerBands(period=3)
    outputs = bb.process_historical_candles(candle_factory([1, 2, 3, 30, 30, 30]))
    assert outputs[-1].graph["middle"] == Decimal(30)


def test_batch_equals_incremental(candle_factory):
    candles = candle_factory([10, 11, 9, 12, 8, 13, 7, 14, 10, 10, 15, 5])
    batch = BollingerBands(period=4).process_historical_candles(candles)
    live = BollingerBands(period=4)
    assert batch == [live.process_new_candle(c) for c in candles]


def test_out_of_order_candle_is_rejected(candle_factory):
    candles = candle_factory([1, 2, 3])
    bb = BollingerBands(period=2)
    bb.process_new_candle(candles[1])
    with pytest.raises(InvalidCandleOrdering):
        bb.process_new_candle(candles[0])
    with pytest.raises(InvalidCandleOrdering):
        bb.process_new_candle(candles[1])


def test_reset_allows_replay(candle_factory):
    candles = candle_factory([1, 2, 3, 4])
    bb = BollingerBands(period=2)
    first = bb.process_historical_candles(candles)
    bb.reset()
    assert bb.process_historical_candles(candles) == first
