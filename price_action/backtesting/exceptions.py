"""Backtesting-specific exceptions."""

from __future__ import annotations

from price_action.common.exceptions import PriceActionError


class BacktestError(PriceActionError):
    """General backtesting error (bad mode, illegal trade transition, etc.)."""


class InsufficientDataError(PriceActionError):
    """Not enough historical data to run the requested backtest."""


class InvalidBarError(PriceActionError):
    """A kline violates the input contract (ordering, prices, timestamps)."""
