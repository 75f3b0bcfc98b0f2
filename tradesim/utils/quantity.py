"""Lot size helpers: round order quantities to the instrument's lot step."""

from __future__ import annotations
from decimal import Decimal, ROUND_DOWN

from tradesim.core.types import ZERO


def round_quantity(qty: Decimal, step_size: Decimal, min_qty: Decimal = ZERO, rounding: str = ROUND_DOWN) -> Decimal:
    """Round to step size (down by default); return 0 if below min_qty."""
    if qty <= 0:
        return ZERO
    rounded = (qty / step_size).to_integral_value(rounding=rounding) * step_size
    if rounded <= 0 or rounded < min_qty:
        return ZERO
    return rounded
