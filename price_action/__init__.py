"""Breakout trend-following backtester over historical klines."""

__version__ = "0.1.0"
