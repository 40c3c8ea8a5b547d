"""Backtesting engine — synchronous kline-by-kline breakout simulation.

Each kline goes through two explicit phases:
1. Resolve exits of open trades against the kline's high/low.
2. Update the rolling window, classify the breakout and admit at most
   one new trade per side.

The engine is entirely synchronous. Klines arrive already loaded and
validated; no I/O occurs during simulation. Every run builds its own
tracker, trade book and aggregator, so one Backtest can be run many
times and separate instances never share state.

Usage:
    from price_action.backtesting.engine import run_backtest

    result = run_backtest(config, bars)
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from price_action.backtesting.data_loader import validate_bars
from price_action.backtesting.metrics import MetricsAggregator, compute_metrics
from price_action.backtesting.schemas import (
    BacktestResult,
    Bar,
    SettingConfig,
    TradeCloseEvent,
)
from price_action.backtesting.signals import classify_breakout
from price_action.backtesting.tracker import RollingExtremumTracker
from price_action.backtesting.trade_book import TradeBook
from price_action.common.logging import get_logger

logger = get_logger("BACKTEST")

TradeCloseSink = Callable[[TradeCloseEvent], None]


def log_trade_close(event: TradeCloseEvent) -> None:
    """Default closure sink: INFO for a non-negative profit, WARNING otherwise."""
    data = {
        "date": datetime.fromtimestamp(event.close_time / 1000, tz=UTC).isoformat(),
        "win": event.win_count,
        "lose": event.lose_count,
        "usd_balance": round(event.usd_balance, 4),
        "size": round(event.size, 4),
        "side": event.side,
        "entry_price": round(event.entry_price, 4),
        "exit_price": round(event.exit_price, 4),
        "profit": round(event.profit, 4),
        "fee": round(event.fee, 4),
    }
    if event.profit >= 0:
        logger.info("Trade closed", extra={"data": data})
    else:
        logger.warning("Trade closed", extra={"data": data})


class Backtest:
    """Breakout backtest over a time-ordered kline sequence.

    Args:
        config: Strategy configuration.
        sink: Called with every TradeCloseEvent. Defaults to log_trade_close.
    """

    def __init__(self, config: SettingConfig, sink: TradeCloseSink | None = None) -> None:
        self.config = config
        self.sink = sink if sink is not None else log_trade_close

    def run(self, bars: Iterable[Bar]) -> BacktestResult:
        """Simulate the strategy over ``bars`` and return the final state.

        Precondition: ``bars`` is finite and sorted ascending by time.
        Use run_backtest() to validate untrusted input first.
        """
        start_time = time.monotonic()
        config = self.config

        tracker = RollingExtremumTracker(config.look_back_count)
        metrics = MetricsAggregator(config.initial_capital)
        book = TradeBook(config, metrics)
        closures: list[TradeCloseEvent] = []
        bars_processed = 0

        for bar in bars:
            bars_processed += 1

            for event in book.resolve_exits(bar):
                closures.append(event)
                self.sink(event)

            tracker.update(bar)
            highs = tracker.last_two_highs()
            lows = tracker.last_two_lows()
            side = classify_breakout(
                highs,
                lows,
                bar,
                config.kline_percentage,
                has_long=book.has_open("long"),
                has_short=book.has_open("short"),
                negate_short_threshold=config.negate_short_threshold,
            )
            if side == "long":
                book.open_trade("long", bar, extremum_reference=lows[1])
            elif side == "short":
                book.open_trade("short", bar, extremum_reference=highs[1])

        result = BacktestResult(
            config=config,
            initial_capital=metrics.initial_capital,
            final_balance=metrics.usd_balance,
            win_count=metrics.win_count,
            lose_count=metrics.lose_count,
            total_fee=metrics.total_fee,
            total_profit=metrics.total_profit,
            max_balance=metrics.max_balance,
            min_balance=metrics.min_balance,
            bars_processed=bars_processed,
            closed_trades=book.closed_trades,
            open_trades=book.open_trades,
            closures=closures,
            duration_seconds=round(time.monotonic() - start_time, 4),
        )
        return compute_metrics(result)


def run_backtest(
    config: SettingConfig,
    bars: Iterable[Bar],
    sink: TradeCloseSink | None = None,
) -> BacktestResult:
    """Validate ``bars`` and run a full backtest.

    Args:
        config: Strategy configuration.
        bars: Klines sorted ascending by time.
        sink: Optional TradeCloseEvent callback (defaults to logging).

    Returns:
        BacktestResult with totals, trades and summary metrics.

    Raises:
        InsufficientDataError: If ``bars`` is empty.
        InvalidBarError: If any kline breaks the input contract.
    """
    bars = list(bars)
    validate_bars(bars)

    logger.info(
        "Backtest started",
        extra={"data": {"bars": len(bars), "initial_capital": config.initial_capital}},
    )
    result = Backtest(config, sink=sink).run(bars)
    logger.info(
        "Backtest finished",
        extra={
            "data": {
                "final_balance": round(result.final_balance, 4),
                "win": result.win_count,
                "lose": result.lose_count,
                "total_fee": round(result.total_fee, 4),
                "total_profit": round(result.total_profit, 4),
                "open_trades": len(result.open_trades),
            }
        },
    )
    return result
