#!/usr/bin/env python3
"""
tradesim CLI
Usage:
  python main.py backtest --candles data/btc_5m.csv [--config config.yaml] [--output reports/]
                          [--monte-carlo 1000 --seed 42]
"""

from __future__ import annotations
import argparse
import logging
from pathlib import Path

from tradesim.analytics.metrics import closed_pnls
from tradesim.analytics.monte_carlo import monte_carlo_drawdowns, monte_carlo_equity
from tradesim.backtesting.engine import BacktestingRuntime
from tradesim.core.config import Config, load_config
from tradesim.core.errors import EngineError
from tradesim.core.logger import setup_logging
from tradesim.data.market_data import find_gaps, load_candles_csv
from tradesim.indicators import VWAP, BollingerBands, SessionReset
from tradesim.portfolio import Portfolio
from tradesim.risk import PositionManager
from tradesim.strategies import Strategy, consensus_from_name

ROOT = Path(__file__).resolve().parent


def build_strategy(config: Config) -> Strategy:
    ind = config.indicators
    return Strategy(
        [
            BollingerBands(period=ind.bbands_period, multiplier=ind.bbands_multiplier, strict=ind.strict),
            VWAP(neutral_band=ind.vwap_neutral_band, window=ind.vwap_window,
                 session=SessionReset(ind.vwap_session), strict=ind.strict),
        ],
        consensus=consensus_from_name(ind.consensus, ind.weights, ind.weighted_threshold),
    )


def run_backtest(config_path: Path | None, candles_path: Path, output_dir: Path | None,
                 simulations: int = 0, seed: int | None = None) -> int:
    """Run a backtest over a candle CSV and print metrics."""
    config = load_config(config_path, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    logger = logging.getLogger("tradesim")
    bt = config.backtest

    candles = load_candles_csv(candles_path)
    find_gaps(candles, bt.timeframe)
    try:
        runtime = BacktestingRuntime(
            candles=candles,
            strategy=build_strategy(config),
            position_manager=PositionManager(config.position),
            portfolio=Portfolio(bt.initial_capital, bt.fee_bps, bt.slippage_bps, bt.allow_leverage),
            asset=bt.symbol,
            start=bt.start,
            end=bt.end,
        )
        result = runtime.run()
    except EngineError as e:
        logger.error("Backtest failed: %s", e)
        return 1

    m = result.metrics
    if m:
        print("\n--- Backtest Results ---")
        print(f"Candles: {len(result.rows)} (warm-up: {result.warmup_count}, rejections: {result.rejection_count})")
        print(f"Trades: {m.total_trades} (closed: {m.closed_trades}, wins: {m.winning_trades}, losses: {m.losing_trades})")
        print(f"Realized P&L: {m.realized_pnl:.2f}  Unrealized P&L: {m.unrealized_pnl:.2f}")
        print(f"Total return: {m.total_return_pct:.2f}%")
        print(f"Sharpe ratio: {m.sharpe_ratio:.2f}")
        print(f"Max drawdown: {m.max_drawdown_pct:.2f}%")
        print(f"Win rate: {m.win_rate * 100:.1f}%")
        print(f"Profit factor: {m.profit_factor:.2f}")
        print(f"Exposure: {m.exposure * 100:.1f}%  VaR(95%): {m.value_at_risk:.2f}")

    pnls = closed_pnls(result.trades)
    if simulations > 0 and pnls:
        finals = monte_carlo_equity(pnls, bt.initial_capital, simulations, seed)
        drawdowns = monte_carlo_drawdowns(pnls, bt.initial_capital, simulations, seed)
        finals.sort()
        drawdowns.sort()
        print(f"\n--- Monte Carlo ({simulations} shuffles) ---")
        print(f"Final equity 5th/50th/95th pct: {finals[len(finals) // 20]:.2f} / "
              f"{finals[len(finals) // 2]:.2f} / {finals[len(finals) * 19 // 20]:.2f}")
        print(f"Worst 5% max drawdown: {drawdowns[len(drawdowns) // 20]:.2f}%")

    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
        result.to_frame().to_csv(output_dir / "candles.csv")
        result.trades_frame().to_csv(output_dir / "trades.csv", index=False)
        logger.info("Reports written to %s", output_dir)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="tradesim CLI")
    parser.add_argument("mode", choices=["backtest"], help="Run a backtest")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--candles", type=Path, required=True, help="CSV with time, open, high, low, close, volume")
    parser.add_argument("--output", type=Path, default=None, help="Directory for CSV reports")
    parser.add_argument("--monte-carlo", type=int, default=0, metavar="N", help="Shuffle closed trades N times")
    parser.add_argument("--seed", type=int, default=None, help="Seed for Monte Carlo shuffles")
    args = parser.parse_args()
    return run_backtest(args.config, args.candles, args.output, args.monte_carlo, args.seed)


if __name__ == "__main__":
    exit(main())
