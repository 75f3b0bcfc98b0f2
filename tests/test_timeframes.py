"""Unit tests for utils.timeframes and utils.quantity."""

from datetime import timedelta
from decimal import ROUND_UP, Decimal

import pytest
from tradesim.utils.quantity import round_quantity
from tradesim.utils.timeframes import timeframe_delta


@pytest.mark.parametrize("tf,expected", [
    ("30s", timedelta(seconds=30)),
    ("15m", timedelta(minutes=15)),
    ("4H", timedelta(hours=4)),
    ("1d", timedelta(days=1)),
    ("1w", timedelta(weeks=1)),
])
def test_timeframe_delta(tf, expected):
    assert timeframe_delta(tf) == expected


@pytest.mark.parametrize("tf", ["1x", "m", "0m", "-5m", ""])
def test_timeframe_invalid(tf):
    with pytest.raises(ValueError):
        timeframe_delta(tf)


def test_round_quantity_rounds_down_to_step():
    assert round_quantity(Decimal("1.23456"), Decimal("0.01")) == Decimal("1.23")
    assert round_quantity(Decimal("0.009"), Decimal("0.01")) == Decimal(0)
    assert round_quantity(Decimal("-1"), Decimal("0.01")) == Decimal(0)


def test_round_quantity_min_qty():
    assert round_quantity(Decimal("0.5"), Decimal("0.1"), min_qty=Decimal(1)) == Decimal(0)


def test_round_quantity_up():
    assert round_quantity(Decimal("1.231"), Decimal("0.01"), rounding=ROUND_UP) == Decimal("1.24")
