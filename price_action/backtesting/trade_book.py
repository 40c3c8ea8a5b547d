"""Open-trade book for the breakout backtest.

Holds at most one open long and one open short trade, keyed by side.
Every trade is created Open and transitions exactly once, to a win at
its take-profit or a loss at its stop-loss. Exits are resolved against
a kline's high/low before any entry is admitted on that kline, so a
trade never exits on the kline that opened it.

Usage:
    book = TradeBook(config, metrics)
    closures = book.resolve_exits(bar)
    book.open_trade("long", bar, extremum_reference=curr_low)
"""

from __future__ import annotations

from price_action.backtesting.metrics import MetricsAggregator
from price_action.backtesting.schemas import (
    Bar,
    SettingConfig,
    Trade,
    TradeCloseEvent,
    TradeSide,
)
from price_action.common.logging import get_logger

logger = get_logger("BACKTEST")

SIDES: tuple[TradeSide, ...] = ("long", "short")


class TradeBook:
    """Admits, sizes and closes simulated trades for one run.

    Attributes:
        config: Strategy configuration (fees, sizing, reward multiples).
        metrics: Run aggregator updated on every entry and closure.
    """

    def __init__(self, config: SettingConfig, metrics: MetricsAggregator) -> None:
        self.config = config
        self.metrics = metrics
        self._open: dict[TradeSide, Trade] = {}
        self._closed: list[Trade] = []

    @property
    def open_trades(self) -> list[Trade]:
        """Currently open trades, long first."""
        return [self._open[side] for side in SIDES if side in self._open]

    @property
    def closed_trades(self) -> list[Trade]:
        """Closed trades in closing order."""
        return list(self._closed)

    def has_open(self, side: TradeSide) -> bool:
        return side in self._open

    def capital_base(self) -> float:
        """Capital the next entry is sized from."""
        if self.config.sizing_base == "initial_capital":
            return self.config.initial_capital
        return self.metrics.usd_balance

    def open_trade(self, side: TradeSide, bar: Bar, extremum_reference: float) -> Trade | None:
        """Open a trade at ``bar.close`` unless one of this side is already open.

        The stop-loss sits at the distance between the entry and
        ``extremum_reference`` (running-min close for a long, running-max
        close for a short); the take-profit sits at the configured reward
        multiple of that distance on the other side.

        Args:
            side: "long" or "short".
            bar: The breakout kline; its close is the entry price.
            extremum_reference: Current running extreme on the opposite side.

        Returns:
            The new Trade, or None if the entry was refused.
        """
        if side in self._open:
            return None

        entry_price = bar.close
        distance = abs(entry_price - extremum_reference)
        if distance == 0:
            logger.debug(
                "Entry refused: zero stop-loss distance",
                extra={"data": {"side": side, "open_time": bar.open_time, "price": entry_price}},
            )
            return None

        capital = self.capital_base()
        if capital <= 0:
            logger.debug(
                "Entry refused: no capital",
                extra={"data": {"side": side, "open_time": bar.open_time, "capital": capital}},
            )
            return None

        reward = self.config.reward_for(side)
        if side == "long":
            stop_loss_price = entry_price - distance
            take_profit_price = entry_price + reward * distance
        else:
            stop_loss_price = entry_price + distance
            take_profit_price = entry_price - reward * distance

        size = capital * self.config.entry_portion / entry_price
        trade = Trade(
            side=side,
            open_time=bar.open_time,
            entry_price=entry_price,
            stop_loss_price=stop_loss_price,
            take_profit_price=take_profit_price,
            size=size,
            entry_fee=entry_price * size * self.config.fee_rate,
        )
        self._open[side] = trade
        self.metrics.record_entry(trade)

        logger.debug(
            "Trade opened",
            extra={
                "data": {
                    "side": side,
                    "open_time": bar.open_time,
                    "entry_price": entry_price,
                    "stop_loss_price": stop_loss_price,
                    "take_profit_price": take_profit_price,
                    "size": size,
                }
            },
        )
        return trade

    def resolve_exits(self, bar: Bar) -> list[TradeCloseEvent]:
        """Close every open trade whose stop-loss or take-profit ``bar`` reaches.

        Stop-loss is checked first, so a kline spanning both levels closes
        the trade as a loss.

        Returns:
            One TradeCloseEvent per trade closed on this kline.
        """
        events: list[TradeCloseEvent] = []
        for side in SIDES:
            trade = self._open.get(side)
            if trade is None:
                continue

            exit_ = _find_exit(trade, bar)
            if exit_ is None:
                continue

            exit_price, won = exit_
            trade.close(exit_price, bar.close_time, won, self.config.fee_rate)
            del self._open[side]
            self._closed.append(trade)
            events.append(self.metrics.record_close(trade))

        return events


def _find_exit(trade: Trade, bar: Bar) -> tuple[float, bool] | None:
    """Return (exit_price, won) if ``bar`` triggers an exit, else None."""
    if trade.side == "long":
        if bar.low <= trade.stop_loss_price:
            return trade.stop_loss_price, False
        if bar.high >= trade.take_profit_price:
            return trade.take_profit_price, True
    else:
        if bar.high >= trade.stop_loss_price:
            return trade.stop_loss_price, False
        if bar.low <= trade.take_profit_price:
            return trade.take_profit_price, True
    return None
