"""
Monte Carlo simulation: shuffle realized trade P&L order to estimate the
distribution of final equity and max drawdown. Reporting only; floats are fine here.
"""

from __future__ import annotations
from decimal import Decimal
from typing import List, Optional, Sequence

import numpy as np


def _shuffled_curves(pnls: Sequence[Decimal], initial_capital: Decimal, n_simulations: int,
                     seed: Optional[int]) -> np.ndarray:
    rng = np.random.default_rng(seed)
    base = np.array([float(p) for p in pnls])
    paths = np.array([rng.permutation(base) for _ in range(n_simulations)])
    start = np.full((n_simulations, 1), float(initial_capital))
    return np.hstack([start, float(initial_capital) + np.cumsum(paths, axis=1)])


def monte_carlo_equity(pnls: Sequence[Decimal], initial_capital: Decimal, n_simulations: int = 1000,
                       seed: Optional[int] = None) -> List[float]:
    """Final equity of each shuffled trade sequence. Order does not change the sum."""
    if not pnls:
        return []
    curves = _shuffled_curves(pnls, initial_capital, n_simulations, seed)
    return curves[:, -1].tolist()


def monte_carlo_drawdowns(pnls: Sequence[Decimal], initial_capital: Decimal, n_simulations: int = 1000,
                          seed: Optional[int] = None) -> List[float]:
    """Max drawdown % (negative) of each shuffled trade sequence."""
    if not pnls:
        return []
    curves = _shuffled_curves(pnls, initial_capital, n_simulations, seed)
    peaks = np.maximum.accumulate(curves, axis=1)
    dd = (curves - peaks) / np.where(peaks != 0, peaks, 1)
    return (dd.min(axis=1) * 100.0).tolist()
