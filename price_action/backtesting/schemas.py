"""Pydantic schemas for backtesting configuration, klines and results.

Prices and balances are plain floats in quote currency (USD); timestamps
are integer milliseconds since the epoch, matching the exchange feeds.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from price_action.backtesting.exceptions import BacktestError

TradeSide = Literal["long", "short"]
SizingBase = Literal["balance", "initial_capital"]

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# ─── Kline ───


class Bar(BaseModel):
    """One OHLC kline. Immutable once constructed."""

    model_config = ConfigDict(frozen=True)

    open_time: int
    close_time: int
    open: float
    high: float
    low: float
    close: float


# ─── Configuration ───


class SettingConfig(BaseModel):
    """Strategy configuration for a backtest run.

    Loaded from the JSON setting file. The legacy key ``initial_captial``
    is accepted for ``initial_capital``, and ``from``/``to`` bound the
    kline query range. Unknown keys are rejected.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    start: str | None = Field(default=None, alias="from")
    end: str | None = Field(default=None, alias="to")
    initial_capital: float = Field(
        default=10_000.0,
        gt=0.0,
        validation_alias=AliasChoices("initial_capital", "initial_captial"),
    )
    fee_rate: float = Field(default=0.0004, ge=0.0, lt=1.0)
    kline_percentage: float = Field(default=0.005, ge=0.0)
    entry_portion: float = Field(default=0.1, gt=0.0, le=1.0)
    look_back_count: int = Field(default=20, ge=2)
    reward_multiple: float = Field(default=2.0, gt=0.0)
    short_reward_multiple: float | None = Field(default=None, gt=0.0)
    negate_short_threshold: bool = True
    sizing_base: SizingBase = "balance"

    @field_validator("start", "end")
    @classmethod
    def validate_time_bound(cls, v: str | None) -> str | None:
        """Ensure range bounds use the 'YYYY-MM-DD HH:MM:SS' format."""
        if v is not None:
            datetime.strptime(v, TIME_FORMAT)
        return v

    @model_validator(mode="after")
    def validate_range(self) -> SettingConfig:
        """Ensure to >= from when both are given."""
        if self.start is not None and self.end is not None:
            if datetime.strptime(self.end, TIME_FORMAT) < datetime.strptime(
                self.start, TIME_FORMAT
            ):
                msg = f"to ({self.end}) must be >= from ({self.start})"
                raise ValueError(msg)
        return self

    def reward_for(self, side: TradeSide) -> float:
        """Take-profit distance multiple for the given side."""
        if side == "short" and self.short_reward_multiple is not None:
            return self.short_reward_multiple
        return self.reward_multiple


# ─── Simulated Trade ───


class Trade(BaseModel):
    """One simulated position, created Open and closed exactly once.

    ``size`` is fixed at creation. ``exit_price``, ``exit_fee``,
    ``close_time``, ``profit`` and ``won`` stay unset until closure.
    """

    side: TradeSide
    open_time: int
    entry_price: float
    stop_loss_price: float
    take_profit_price: float
    size: float
    entry_fee: float = 0.0
    is_open: bool = True
    exit_price: float | None = None
    exit_fee: float | None = None
    close_time: int | None = None
    profit: float | None = None
    won: bool | None = None

    @property
    def direction(self) -> float:
        """+1 for long, -1 for short."""
        return 1.0 if self.side == "long" else -1.0

    def close(self, exit_price: float, close_time: int, won: bool, fee_rate: float) -> float:
        """Close the trade at ``exit_price`` and return the realized profit.

        Raises:
            BacktestError: If the trade is already closed.
        """
        if not self.is_open:
            raise BacktestError(
                "Trade is already closed",
                context={"side": self.side, "open_time": self.open_time},
            )

        self.exit_price = exit_price
        self.exit_fee = exit_price * self.size * fee_rate
        self.close_time = close_time
        self.profit = (exit_price - self.entry_price) * self.size * self.direction
        self.won = won
        self.is_open = False
        return self.profit


# ─── Trade Closure Record ───


class TradeCloseEvent(BaseModel):
    """Structured record emitted every time a trade closes.

    Counters and balance reflect the state right after this closure.
    """

    close_time: int
    side: TradeSide
    won: bool
    win_count: int
    lose_count: int
    usd_balance: float
    size: float
    entry_price: float
    exit_price: float
    profit: float
    fee: float


# ─── Full Backtest Result ───


class BacktestResult(BaseModel):
    """Complete result of a backtest run."""

    config: SettingConfig
    initial_capital: float
    final_balance: float
    win_count: int = 0
    lose_count: int = 0
    total_fee: float = 0.0
    total_profit: float = 0.0
    max_balance: float = 0.0
    min_balance: float = 0.0
    bars_processed: int = 0
    closed_trades: list[Trade] = []
    open_trades: list[Trade] = []
    closures: list[TradeCloseEvent] = []
    win_rate: float = 0.0
    roi_pct: float = 0.0
    net_profit: float = 0.0
    max_drawdown_pct: float = 0.0
    duration_seconds: float = 0.0
