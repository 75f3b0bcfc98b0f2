"""Core: types, errors, config, logging, candle processor contract."""

from tradesim.core.config import (
    load_config,
    Config,
    PositionManagerConfig,
    IndicatorConfig,
    BacktestConfig,
)
from tradesim.core.errors import (
    EngineError,
    InsufficientHistory,
    InvalidCandleOrdering,
    InvalidCandleData,
    TradeRejected,
    ConfigurationError,
    BacktestAborted,
)
from tradesim.core.logger import setup_logging
from tradesim.core.processor import CandleProcessor
from tradesim.core.types import (
    Candle,
    Signal,
    Side,
    ReasonCode,
    IndicatorOutput,
    StrategyOutput,
    ProposedTrade,
    ExecutedTrade,
    FailedTrade,
    OpenPosition,
    PortfolioSnapshot,
)

__all__ = [
    "load_config",
    "Config",
    "PositionManagerConfig",
    "IndicatorConfig",
    "BacktestConfig",
    "EngineError",
    "InsufficientHistory",
    "InvalidCandleOrdering",
    "InvalidCandleData",
    "TradeRejected",
    "ConfigurationError",
    "BacktestAborted",
    "setup_logging",
    "CandleProcessor",
    "Candle",
    "Signal",
    "Side",
    "ReasonCode",
    "IndicatorOutput",
    "StrategyOutput",
    "ProposedTrade",
    "ExecutedTrade",
    "FailedTrade",
    "OpenPosition",
    "PortfolioSnapshot",
]
