"""
Strategy: feeds each candle to its indicators and reduces their outputs to one signal.
A Strategy is itself a CandleProcessor, so it replays history exactly like an indicator.
"""

from __future__ import annotations
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from tradesim.core.errors import ConfigurationError, InsufficientHistory
from tradesim.core.processor import CandleProcessor
from tradesim.core.types import Candle, IndicatorOutput, Signal, StrategyOutput, ZERO
from tradesim.indicators.base import Indicator
from tradesim.strategies.consensus import Consensus, Majority, WeightedVote


class Strategy(CandleProcessor[StrategyOutput]):
    """Owns an ordered sequence of indicators and a consensus policy."""

    def __init__(
        self,
        indicators: Sequence[Indicator],
        consensus: Optional[Consensus] = None,
        name: str = "strategy",
    ):
        super().__init__()
        if not indicators:
            raise ConfigurationError("strategy needs at least one indicator")
        names = [i.get_name() for i in indicators]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"indicator names must be unique: {names}")
        consensus = consensus or Majority()
        if isinstance(consensus, WeightedVote) and len(consensus.weights) != len(indicators):
            raise ConfigurationError(f"{len(consensus.weights)} weights for {len(indicators)} indicators")
        self.indicators = list(indicators)
        self.consensus = consensus
        self.name = name

    def get_name(self) -> str:
        return self.name

    def indicator_names(self) -> List[str]:
        return [i.get_name() for i in self.indicators]

    def _clear(self) -> None:
        for indicator in self.indicators:
            indicator.reset()

    def _process(self, candle: Candle) -> StrategyOutput:
        # Every indicator sees every candle, even if one of them is still warming up in strict mode
        outputs: List[IndicatorOutput] = []
        pending: Optional[InsufficientHistory] = None
        for indicator in self.indicators:
            try:
                outputs.append(indicator.process_new_candle(candle))
            except InsufficientHistory as e:
                pending = pending or e
                outputs.append(IndicatorOutput(time=candle.time, signal=Signal.HOLD, warmup=True))
        if pending is not None:
            partial = StrategyOutput(time=candle.time, signal=Signal.HOLD, strength=ZERO, outputs=tuple(outputs))
            raise InsufficientHistory(pending.name, pending.required, pending.seen, partial=partial) from pending
        signal, strength = self.consensus.reduce(outputs)
        return StrategyOutput(time=candle.time, signal=signal, strength=strength, outputs=tuple(outputs))

    def get_combined_signals(self, candles: Iterable[Candle]) -> List[Signal]:
        """Combined signal value per candle; same as calling process_new_candle in a loop."""
        return [o.signal for o in self.process_historical_candles(candles)]

    def get_all_signals(self, candles: Iterable[Candle]) -> pd.DataFrame:
        """One row per candle: each indicator's signal plus the combined one, indexed by time."""
        return signals_frame(self.indicator_names(), self.process_historical_candles(candles))

    def outputs_to_frame(self, outputs: Sequence[StrategyOutput]) -> pd.DataFrame:
        """Graph values and signals for report export, one row per output."""
        return graph_frame(self.indicator_names(), outputs)


def signals_frame(names: Sequence[str], outputs: Sequence[StrategyOutput]) -> pd.DataFrame:
    rows = []
    for out in outputs:
        row = {"time": out.time}
        for name, component in zip(names, out.outputs):
            row[name] = component.signal.value
        row["combined"] = out.signal.value
        rows.append(row)
    return pd.DataFrame(rows, columns=["time", *names, "combined"]).set_index("time")


def graph_frame(names: Sequence[str], outputs: Sequence[StrategyOutput]) -> pd.DataFrame:
    rows = []
    for out in outputs:
        row = {"time": out.time}
        for name, component in zip(names, out.outputs):
            for key, value in component.graph.items():
                row[f"{name}_{key}"] = value
            row[f"{name}_signal"] = component.signal.value
        row["signal"] = out.signal.value
        row["strength"] = out.strength
        rows.append(row)
    return pd.DataFrame(rows).set_index("time") if rows else pd.DataFrame()
