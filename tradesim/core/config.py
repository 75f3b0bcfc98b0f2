"""
Load configuration from config.yaml and .env. Env vars override the file.
Every component is built from the explicit, frozen values returned here.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional, Tuple

import yaml
from dotenv import load_dotenv

from tradesim.core.errors import ConfigurationError
from tradesim.core.types import ONE, ZERO, to_decimal
from tradesim.utils.timeframes import timeframe_delta


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigurationError(message)


@dataclass(frozen=True)
class PositionManagerConfig:
    """
    Decision thresholds for the position manager.

    risk_tolerance: max projected exposure as a fraction of equity (0 = no exposure allowed).
    max_position_size: max units held in one asset.
    min_signal_strength: signals weaker than this are ignored.
    stop_loss_pct / take_profit_pct: fractions of entry price; 0 disables.
    trade_quantity: fixed order size; when None, capital_fraction of available capital is used.
    quantity_step: orders are rounded down to this lot step.
    min_profit: signal sells are skipped unless proceeds exceed cost basis by more than this.
    unrealized_pnl_limit: close the position once unrealized P&L reaches this amount.
    var_limit: cap on historical VaR of the open position; excess is sold off, buys are blocked.
    var_window / var_confidence: closes and confidence level used for that VaR.
    Amounts are in quote currency; None disables the rule.
    """
    risk_tolerance: Decimal = ONE
    max_position_size: Decimal = Decimal("100")
    min_signal_strength: Decimal = ZERO
    stop_loss_pct: Decimal = Decimal("0.05")
    take_profit_pct: Decimal = Decimal("0.10")
    capital_fraction: Decimal = Decimal("0.10")
    trade_quantity: Optional[Decimal] = None
    quantity_step: Decimal = Decimal("0.0001")
    min_profit: Optional[Decimal] = None
    unrealized_pnl_limit: Optional[Decimal] = None
    var_limit: Optional[Decimal] = None
    var_window: int = 100
    var_confidence: Decimal = Decimal("0.95")

    def __post_init__(self) -> None:
        for name in ("risk_tolerance", "max_position_size", "min_signal_strength",
                     "stop_loss_pct", "take_profit_pct", "capital_fraction", "quantity_step"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        object.__setattr__(self, "var_confidence", to_decimal(self.var_confidence))
        for name in ("trade_quantity", "min_profit", "unrealized_pnl_limit", "var_limit"):
            if getattr(self, name) is not None:
                object.__setattr__(self, name, to_decimal(getattr(self, name)))
        _require(self.risk_tolerance >= 0, "risk_tolerance must be >= 0")
        _require(self.max_position_size > 0, "max_position_size must be > 0")
        _require(ZERO <= self.min_signal_strength <= ONE, "min_signal_strength must be within [0, 1]")
        _require(ZERO <= self.stop_loss_pct < ONE, "stop_loss_pct must be within [0, 1)")
        _require(self.take_profit_pct >= 0, "take_profit_pct must be >= 0")
        _require(ZERO < self.capital_fraction <= ONE, "capital_fraction must be within (0, 1]")
        _require(self.trade_quantity is None or self.trade_quantity > 0, "trade_quantity must be > 0")
        _require(self.quantity_step > 0, "quantity_step must be > 0")
        _require(self.unrealized_pnl_limit is None or self.unrealized_pnl_limit > 0, "unrealized_pnl_limit must be > 0")
        _require(self.var_limit is None or self.var_limit >= 0, "var_limit must be >= 0")
        _require(self.var_window >= 2, "var_window must be >= 2")
        _require(ZERO < self.var_confidence < ONE, "var_confidence must be within (0, 1)")


@dataclass(frozen=True)
class IndicatorConfig:
    """Indicator parameters and the consensus rule that combines them."""
    bbands_period: int = 20
    bbands_multiplier: Decimal = Decimal("2")
    vwap_neutral_band: Decimal = Decimal("0.01")
    vwap_window: Optional[int] = None
    vwap_session: str = "none"  # "none" | "daily"
    strict: bool = False
    consensus: str = "majority"  # "unison" | "majority" | "weighted"
    weights: Tuple[Decimal, ...] = ()
    weighted_threshold: Decimal = Decimal("0.5")

    def __post_init__(self) -> None:
        object.__setattr__(self, "bbands_multiplier", to_decimal(self.bbands_multiplier))
        object.__setattr__(self, "vwap_neutral_band", to_decimal(self.vwap_neutral_band))
        object.__setattr__(self, "weighted_threshold", to_decimal(self.weighted_threshold))
        object.__setattr__(self, "weights", tuple(to_decimal(w) for w in self.weights))
        _require(self.bbands_period >= 2, "bbands_period must be >= 2")
        _require(self.bbands_multiplier >= 0, "bbands_multiplier must be >= 0")
        _require(self.vwap_neutral_band >= 0, "vwap_neutral_band must be >= 0")
        _require(self.vwap_window is None or self.vwap_window >= 1, "vwap_window must be >= 1")
        _require(self.vwap_session in ("none", "daily"), f"unknown vwap_session: {self.vwap_session}")
        _require(self.consensus in ("unison", "majority", "weighted"), f"unknown consensus: {self.consensus}")


@dataclass(frozen=True)
class BacktestConfig:
    """Run parameters: asset, range, capital and execution costs."""
    symbol: str = "BTC-USD"
    timeframe: str = "5m"
    start: Optional[str] = None
    end: Optional[str] = None
    initial_capital: Decimal = Decimal("10000")
    fee_bps: Decimal = ZERO
    slippage_bps: Decimal = ZERO
    allow_leverage: bool = False

    def __post_init__(self) -> None:
        for name in ("initial_capital", "fee_bps", "slippage_bps"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        try:
            timeframe_delta(self.timeframe)
        except ValueError as e:
            raise ConfigurationError(str(e))
        _require(self.initial_capital > 0, "initial_capital must be > 0")
        _require(self.fee_bps >= 0, "fee_bps must be >= 0")
        _require(self.slippage_bps >= 0, "slippage_bps must be >= 0")


@dataclass(frozen=True)
class Config:
    """Unified configuration. Immutable after load."""
    position: PositionManagerConfig = field(default_factory=PositionManagerConfig)
    indicators: IndicatorConfig = field(default_factory=IndicatorConfig)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    log_file: str = "tradesim.log"


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> Config:
    """Load config.yaml and overlay with env. Raises ConfigurationError on bad values."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: Any = None) -> Any:
        value = os.getenv(key)
        return value.strip() if value is not None else default

    def env_bool(key: str, default: bool = False) -> bool:
        value = os.getenv(key)
        if value is None:
            return bool(default)
        return value.lower() in ("true", "1", "yes")

    def env_int(key: str, default: Optional[int]) -> Optional[int]:
        value = env(key, default)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"{key} must be an integer, got {value!r}")

    def env_decimal(key: str, default: Any) -> Optional[Decimal]:
        value = env(key, default)
        if value is None:
            return None
        try:
            return to_decimal(value)
        except InvalidOperation:
            raise ConfigurationError(f"{key} must be a number, got {value!r}")

    position = data.get("position", {})
    indicators = data.get("indicators", {})
    backtest = data.get("backtest", {})
    logging_cfg = data.get("logging", {})

    pm_defaults = PositionManagerConfig()
    ind_defaults = IndicatorConfig()
    bt_defaults = BacktestConfig()

    return Config(
        position=PositionManagerConfig(
            risk_tolerance=env_decimal("RISK_TOLERANCE", position.get("risk_tolerance", pm_defaults.risk_tolerance)),
            max_position_size=env_decimal("MAX_POSITION_SIZE", position.get("max_position_size", pm_defaults.max_position_size)),
            min_signal_strength=env_decimal("MIN_SIGNAL_STRENGTH", position.get("min_signal_strength", pm_defaults.min_signal_strength)),
            stop_loss_pct=env_decimal("STOP_LOSS_PCT", position.get("stop_loss_pct", pm_defaults.stop_loss_pct)),
            take_profit_pct=env_decimal("TAKE_PROFIT_PCT", position.get("take_profit_pct", pm_defaults.take_profit_pct)),
            capital_fraction=env_decimal("CAPITAL_FRACTION", position.get("capital_fraction", pm_defaults.capital_fraction)),
            trade_quantity=env_decimal("TRADE_QUANTITY", position.get("trade_quantity")),
            quantity_step=env_decimal("QUANTITY_STEP", position.get("quantity_step", pm_defaults.quantity_step)),
            min_profit=env_decimal("MIN_PROFIT", position.get("min_profit")),
            unrealized_pnl_limit=env_decimal("UNREALIZED_PNL_LIMIT", position.get("unrealized_pnl_limit")),
            var_limit=env_decimal("VAR_LIMIT", position.get("var_limit")),
            var_window=env_int("VAR_WINDOW", position.get("var_window", pm_defaults.var_window)),
            var_confidence=env_decimal("VAR_CONFIDENCE", position.get("var_confidence", pm_defaults.var_confidence)),
        ),
        indicators=IndicatorConfig(
            bbands_period=env_int("BBANDS_PERIOD", indicators.get("bbands_period", ind_defaults.bbands_period)),
            bbands_multiplier=env_decimal("BBANDS_MULTIPLIER", indicators.get("bbands_multiplier", ind_defaults.bbands_multiplier)),
            vwap_neutral_band=env_decimal("VWAP_NEUTRAL_BAND", indicators.get("vwap_neutral_band", ind_defaults.vwap_neutral_band)),
            vwap_window=env_int("VWAP_WINDOW", indicators.get("vwap_window")),
            vwap_session=env("VWAP_SESSION", indicators.get("vwap_session", ind_defaults.vwap_session)).lower(),
            strict=env_bool("STRICT_INDICATORS", indicators.get("strict", False)),
            consensus=env("CONSENSUS", indicators.get("consensus", ind_defaults.consensus)).lower(),
            weights=tuple(indicators.get("weights") or ()),
            weighted_threshold=env_decimal("WEIGHTED_THRESHOLD", indicators.get("weighted_threshold", ind_defaults.weighted_threshold)),
        ),
        backtest=BacktestConfig(
            symbol=env("SYMBOL", backtest.get("symbol", bt_defaults.symbol)).upper(),
            timeframe=env("TIMEFRAME", backtest.get("timeframe", bt_defaults.timeframe)),
            start=env("BACKTEST_START", backtest.get("start_date")),
            end=env("BACKTEST_END", backtest.get("end_date")),
            initial_capital=env_decimal("INITIAL_CAPITAL", backtest.get("initial_capital", bt_defaults.initial_capital)),
            fee_bps=env_decimal("FEE_BPS", backtest.get("fee_bps", bt_defaults.fee_bps)),
            slippage_bps=env_decimal("SLIPPAGE_BPS", backtest.get("slippage_bps", bt_defaults.slippage_bps)),
            allow_leverage=env_bool("ALLOW_LEVERAGE", backtest.get("allow_leverage", False)),
        ),
        log_level=env("LOG_LEVEL", logging_cfg.get("level", "INFO")),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "tradesim.log"),
    )
