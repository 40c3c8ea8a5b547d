"""Backtesting module — kline-by-kline simulation of the breakout strategy.

Replays historical klines through a rolling look-back window, opens
long/short trades on breakouts and tracks balance, fees and win/lose
statistics without touching a real exchange.
"""

from __future__ import annotations
