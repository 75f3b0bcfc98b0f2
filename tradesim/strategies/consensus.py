"""
Consensus policies: how a strategy reduces its indicators' outputs to one signal.
Each policy returns (signal, strength).
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Sequence, Tuple

from tradesim.core.errors import ConfigurationError
from tradesim.core.types import IndicatorOutput, Signal, ZERO, ONE, to_decimal

_DIRECTION = {Signal.BUY: 1, Signal.SELL: -1, Signal.HOLD: 0}


class Consensus(ABC):
    name = "consensus"

    @abstractmethod
    def reduce(self, outputs: Sequence[IndicatorOutput]) -> Tuple[Signal, Decimal]:
        pass


class Unison(Consensus):
    """BUY or SELL only when every indicator agrees."""

    name = "unison"

    def reduce(self, outputs: Sequence[IndicatorOutput]) -> Tuple[Signal, Decimal]:
        if not outputs:
            return Signal.HOLD, ZERO
        first = outputs[0].signal
        if first is Signal.HOLD or any(o.signal is not first for o in outputs):
            return Signal.HOLD, ZERO
        return first, min(o.strength for o in outputs)


class Majority(Consensus):
    """Strict plurality of BUY/SELL/HOLD votes; ties are HOLD."""

    name = "majority"

    def reduce(self, outputs: Sequence[IndicatorOutput]) -> Tuple[Signal, Decimal]:
        if not outputs:
            return Signal.HOLD, ZERO
        votes = {Signal.BUY: 0, Signal.SELL: 0, Signal.HOLD: 0}
        for o in outputs:
            votes[o.signal] += 1
        buy, sell, hold = votes[Signal.BUY], votes[Signal.SELL], votes[Signal.HOLD]
        if buy > sell and buy > hold:
            return Signal.BUY, Decimal(buy) / len(outputs)
        if sell > buy and sell > hold:
            return Signal.SELL, Decimal(sell) / len(outputs)
        return Signal.HOLD, ZERO


class WeightedVote(Consensus):
    """
    score = sum(w_i * direction_i * strength_i) / sum(w_i), direction in {+1, 0, -1}.
    BUY when score >= threshold, SELL when score <= -threshold.
    """

    name = "weighted"

    def __init__(self, weights: Sequence[Decimal], threshold: Decimal = Decimal("0.5")):
        weights = tuple(to_decimal(w) for w in weights)
        threshold = to_decimal(threshold)
        if not weights or any(w < 0 for w in weights) or sum(weights) <= 0:
            raise ConfigurationError("weights must be non-negative with a positive sum")
        if not ZERO < threshold <= ONE:
            raise ConfigurationError(f"threshold must be within (0, 1], got {threshold}")
        self.weights = weights
        self.threshold = threshold

    def reduce(self, outputs: Sequence[IndicatorOutput]) -> Tuple[Signal, Decimal]:
        if len(outputs) != len(self.weights):
            raise ConfigurationError(f"{len(self.weights)} weights for {len(outputs)} indicators")
        score = sum(w * _DIRECTION[o.signal] * o.strength for w, o in zip(self.weights, outputs))
        score = score / sum(self.weights)
        if score >= self.threshold:
            return Signal.BUY, score
        if score <= -self.threshold:
            return Signal.SELL, -score
        return Signal.HOLD, ZERO


def consensus_from_name(name: str, weights: Sequence[Decimal] = (), threshold: Decimal = Decimal("0.5")) -> Consensus:
    """Build a policy from its config name."""
    name = name.lower()
    if name == Unison.name:
        return Unison()
    if name == Majority.name:
        return Majority()
    if name == WeightedVote.name:
        return WeightedVote(weights, threshold)
    raise ConfigurationError(f"unknown consensus: {name!r}")
