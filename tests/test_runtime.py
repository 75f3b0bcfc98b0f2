"""Tests for backtesting.engine.BacktestingRuntime."""

from decimal import Decimal, InvalidOperation

import pytest
from tradesim.backtesting import BacktestingRuntime
from tradesim.core.config import PositionManagerConfig
from tradesim.core.errors import BacktestAborted, InvalidCandleData, InvalidCandleOrdering
from tradesim.core.types import Candle, ReasonCode, Side
from tradesim.indicators import VWAP, BollingerBands
from tradesim.portfolio import Portfolio
from tradesim.risk import PositionManager
from tradesim.strategies import Strategy

ASSET = "BTC-USD"
NO_EXITS = dict(stop_loss_pct=Decimal(0), take_profit_pct=Decimal(0))


def runtime(candles, indicators=None, capital=10000, **pm_kwargs):
    strategy = Strategy(indicators or [VWAP()])
    config = PositionManagerConfig(**{**NO_EXITS, **pm_kwargs})
    return BacktestingRuntime(candles, strategy, PositionManager(config), Portfolio(Decimal(capital)), ASSET)


def test_round_trip_trade(candle_factory):
    # VWAP: 100, 100, 96.67 (BUY), 95 (BUY), 100 (SELL at 120)
    candles = candle_factory([100, 100, 90, 90, 120])
    result = runtime(candles, trade_quantity=Decimal(10)).run()

    assert len(result.rows) == 5
    assert [t.side for t in result.trades] == [Side.BUY, Side.BUY, Side.SELL]
    assert result.trades[-1].quantity == Decimal(20)
    assert result.trades[-1].realized_pnl == Decimal(600)
    assert result.rows[2].executed.side is Side.BUY
    assert result.rows[0].executed is None
    assert result.metrics.equity == Decimal(10600)
    assert result.metrics.realized_pnl == Decimal(600)
    assert result.equity_curve[-1] == Decimal(10600)
    assert result.failed_trades == []


def test_zero_risk_tolerance_run_completes_without_trades(candle_factory):
    candles = candle_factory([100, 100, 90, 90, 120])
    result = runtime(candles, risk_tolerance=Decimal(0)).run()
    assert result.trades == []
    assert result.rejection_count == 2
    assert all(r.decision.rejection in (None, ReasonCode.RISK_TOLERANCE) for r in result.rows)
    assert result.metrics.equity == Decimal(10000)


def test_portfolio_rejection_is_recorded_and_run_continues(candle_factory):
    candles = candle_factory([100, 100, 90, 90, 120])
    result = runtime(candles, trade_quantity=Decimal(200), risk_tolerance=Decimal(10),
                     max_position_size=Decimal(1000)).run()
    assert result.trades == []
    assert len(result.failed_trades) == 2
    assert all(f.reason is ReasonCode.INSUFFICIENT_FUNDS for f in result.failed_trades)
    assert result.rejection_count == 2
    assert len(result.rows) == 5


def test_warmup_candles_counted(candle_factory):
    candles = candle_factory([100 + i % 3 for i in range(10)])
    result = runtime(candles, indicators=[BollingerBands(period=5), VWAP()]).run()
    assert result.warmup_count == 4
    assert len(result.rows) == 10


def test_strict_warmup_is_hold(candle_factory):
    candles = candle_factory([100, 100, 90, 90, 120])
    indicators = [BollingerBands(period=3, strict=True), VWAP(strict=True)]
    result = runtime(candles, indicators=indicators, trade_quantity=Decimal(1)).run()
    assert result.warmup_count == 2
    assert all(r.executed is None for r in result.rows[:2])
    assert len(result.rows) == 5


def test_unordered_candles_rejected_up_front(candle_factory):
    candles = candle_factory([100, 101, 102])
    with pytest.raises(InvalidCandleOrdering) as exc:
        runtime([candles[0], candles[2], candles[1]])
    assert exc.value.index == 2


def test_fatal_error_aborts_run(candle_factory):
    candles = candle_factory([100, 101, 102])
    rt = runtime(candles)
    rt.strategy.process_historical_candles(candles)
    with pytest.raises(BacktestAborted) as exc:
        rt.run()
    assert exc.value.index == 0
    assert isinstance(exc.value.cause, InvalidCandleOrdering)


def test_date_range_trimming(candle_factory):
    candles = candle_factory([100] * 12)  # 09:30 .. 10:25
    strategy = Strategy([VWAP()])
    rt = BacktestingRuntime(candles, strategy, PositionManager(PositionManagerConfig()), Portfolio(Decimal(1000)),
                            ASSET, start="2024-01-02 09:40", end="2024-01-02 10:00")
    result = rt.run()
    assert len(result.rows) == 5
    assert result.rows[0].candle.time == candles[2].time
    assert result.rows[-1].candle.time == candles[6].time


def test_empty_range_has_no_metrics(candle_factory):
    candles = candle_factory([100, 101])
    rt = BacktestingRuntime(candles, Strategy([VWAP()]), PositionManager(PositionManagerConfig()),
                            Portfolio(Decimal(1000)), ASSET, start="2030-01-01")
    result = rt.run()
    assert result.rows == []
    assert result.metrics is None
    assert result.to_frame().empty


def test_result_frames(candle_factory):
    candles = candle_factory([100, 100, 90, 90, 120])
    result = runtime(candles, indicators=[BollingerBands(period=3), VWAP()], trade_quantity=Decimal(10)).run()
    df = result.to_frame()
    assert len(df) == 5
    for column in ("close", "bbands_upper", "vwap_vwap", "signal", "trade_side", "equity"):
        assert column in df.columns
    trades = result.trades_frame()
    assert len(trades) == len(result.trades)
    assert list(trades.columns)[:3] == ["time", "asset", "side"]


def test_strict_warmup_rows_keep_ready_indicator_values(candle_factory):
    candles = candle_factory([100, 100.5, 90, 90, 120])
    indicators = [BollingerBands(period=3, strict=True), VWAP(strict=True)]
    df = runtime(candles, indicators=indicators).run().to_frame()
    assert df["vwap_vwap"].iloc[0] == Decimal(100)
    assert df["vwap_vwap"].iloc[1] == Decimal("100.25")
    assert df["vwap_signal"].notna().all()
    assert list(df["bbands_signal"].iloc[:2]) == ["HOLD", "HOLD"]


def test_nan_price_rejected_with_index(candle_factory):
    candles = candle_factory([100, 101, 102, 103])
    bad = candles[-1]
    candles[-1] = Candle(bad.time, bad.open, bad.high, bad.low, Decimal("NaN"), bad.volume)
    with pytest.raises(InvalidCandleData) as exc:
        runtime(candles, indicators=[BollingerBands(period=3), VWAP()])
    assert exc.value.index == 3
    assert exc.value.field == "close"


def test_unexpected_error_aborts_with_candle_index(candle_factory):
    candles = candle_factory([100, 101, 102, 103, 104])
    rt = runtime(candles, indicators=[BollingerBands(period=3), VWAP()])
    bad = rt.candles[4]
    rt.candles[4] = Candle(bad.time, bad.open, bad.high, bad.low, Decimal("NaN"), bad.volume)
    with pytest.raises(BacktestAborted) as exc:
        rt.run()
    assert exc.value.index == 4
    assert exc.value.time == bad.time
    assert isinstance(exc.value.cause, InvalidOperation)
