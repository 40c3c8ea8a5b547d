"""Run-scoped metrics: the live aggregator and the post-run summary.

MetricsAggregator accumulates balance, fees, profit and win/lose counts
while the engine runs; it is append-only and belongs to a single run.
compute_metrics() derives the summary ratios once the run is over:
- Win rate, ROI, net profit after fees
- Maximum drawdown over the closed-trade balance path

Usage:
    from price_action.backtesting.metrics import compute_metrics

    result = compute_metrics(result)  # Mutates result in-place and returns it
"""

from __future__ import annotations

from price_action.backtesting.exceptions import BacktestError
from price_action.backtesting.schemas import BacktestResult, Trade, TradeCloseEvent


class MetricsAggregator:
    """Accumulates balance, fee and win/lose statistics for one run.

    The balance is always ``initial_capital + total_profit``, so profit
    bookkeeping and the reported balance can never drift apart. Entry fees
    are counted in ``total_fee`` but are not deducted from the balance.

    Attributes:
        initial_capital: Starting balance of the run.
        win_count: Trades closed at take-profit.
        lose_count: Trades closed at stop-loss.
        total_fee: Entry plus exit fees charged so far.
        total_profit: Sum of realized trade profits (before fees).
    """

    def __init__(self, initial_capital: float) -> None:
        self.initial_capital = initial_capital
        self.win_count = 0
        self.lose_count = 0
        self.total_fee = 0.0
        self.total_profit = 0.0
        self._max_balance = initial_capital
        self._min_balance = initial_capital

    @property
    def usd_balance(self) -> float:
        """Current balance: initial capital plus realized profit."""
        return self.initial_capital + self.total_profit

    @property
    def max_balance(self) -> float:
        """Highest balance seen at any closure (or the initial capital)."""
        return self._max_balance

    @property
    def min_balance(self) -> float:
        """Lowest balance seen at any closure (or the initial capital)."""
        return self._min_balance

    def record_entry(self, trade: Trade) -> None:
        """Charge the entry fee of a newly opened trade."""
        self.total_fee += trade.entry_fee

    def record_close(self, trade: Trade) -> TradeCloseEvent:
        """Book a closed trade and return its closure record.

        Args:
            trade: A trade that has just transitioned to closed.

        Returns:
            TradeCloseEvent with counters and balance after this closure.

        Raises:
            BacktestError: If the trade is still open.
        """
        if trade.is_open or trade.profit is None or trade.exit_price is None:
            raise BacktestError(
                "Cannot record an open trade",
                context={"side": trade.side, "open_time": trade.open_time},
            )

        self.total_profit += trade.profit
        if trade.won:
            self.win_count += 1
        else:
            self.lose_count += 1
        fee = trade.exit_fee or 0.0
        self.total_fee += fee

        balance = self.usd_balance
        self._max_balance = max(self._max_balance, balance)
        self._min_balance = min(self._min_balance, balance)

        return TradeCloseEvent(
            close_time=trade.close_time,
            side=trade.side,
            won=bool(trade.won),
            win_count=self.win_count,
            lose_count=self.lose_count,
            usd_balance=balance,
            size=trade.size,
            entry_price=trade.entry_price,
            exit_price=trade.exit_price,
            profit=trade.profit,
            fee=fee,
        )


def compute_metrics(result: BacktestResult) -> BacktestResult:
    """Compute the summary ratios on a BacktestResult.

    Populates: win_rate, roi_pct, net_profit, max_drawdown_pct.

    Args:
        result: BacktestResult with totals and closures populated.

    Returns:
        The same BacktestResult with metrics filled in.
    """
    trades = result.win_count + result.lose_count
    result.win_rate = round(result.win_count / trades, 4) if trades > 0 else 0.0
    result.roi_pct = _compute_roi(result.total_profit, result.initial_capital)
    result.net_profit = result.total_profit - result.total_fee
    result.max_drawdown_pct = _compute_max_drawdown(result)
    return result


def _compute_roi(total_profit: float, initial_capital: float) -> float:
    """Compute return on investment as a percentage.

    Args:
        total_profit: Realized profit over the run.
        initial_capital: Starting balance.

    Returns:
        ROI as a percentage (e.g., 8.5 for 8.5%).
    """
    if initial_capital <= 0:
        return 0.0
    return round(total_profit / initial_capital * 100, 2)


def _compute_max_drawdown(result: BacktestResult) -> float:
    """Compute maximum drawdown as a percentage of peak balance.

    The balance only changes when a trade closes, so the closure records
    are the full balance path.
    """
    peak = result.initial_capital
    max_dd = 0.0

    for closure in result.closures:
        if closure.usd_balance > peak:
            peak = closure.usd_balance
        if peak > 0:
            dd = (peak - closure.usd_balance) / peak * 100
            max_dd = max(max_dd, dd)

    return round(max_dd, 2)
