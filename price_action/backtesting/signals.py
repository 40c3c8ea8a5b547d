"""Breakout classification for a single kline.

A long breakout needs a strictly higher running-max close while the
running-min close is unchanged, plus a bullish candle body of at least
``threshold``. A short breakout mirrors it. Comparisons on closes are
exact float comparisons, so an unchanged extreme means bit-identical.
"""

from __future__ import annotations

from price_action.backtesting.schemas import Bar, TradeSide


def candle_percentage(bar: Bar) -> float:
    """Candle body as a fraction of the open: (close - open) / open."""
    return (bar.close - bar.open) / bar.open


def classify_breakout(
    highs: tuple[float, float] | None,
    lows: tuple[float, float] | None,
    bar: Bar,
    threshold: float,
    has_long: bool = False,
    has_short: bool = False,
    negate_short_threshold: bool = True,
) -> TradeSide | None:
    """Classify ``bar`` as a long breakout, a short breakout, or neither.

    Args:
        highs: (prev, curr) running-max close, or None while warming up.
        lows: (prev, curr) running-min close, or None while warming up.
        bar: The kline just added to the tracker.
        threshold: Minimum candle body fraction (kline_percentage).
        has_long: A long trade is already open.
        has_short: A short trade is already open.
        negate_short_threshold: Compare shorts against -threshold (True)
            or +threshold (False).

    Returns:
        "long", "short", or None when no entry qualifies.
    """
    if highs is None or lows is None:
        return None

    prev_high, curr_high = highs
    prev_low, curr_low = lows
    pct = candle_percentage(bar)

    higher_high = prev_high < curr_high
    higher_low = prev_low == curr_low
    if higher_high and higher_low and pct >= threshold and not has_long:
        return "long"

    lower_low = prev_low > curr_low
    lower_high = prev_high == curr_high
    short_threshold = -threshold if negate_short_threshold else threshold
    if lower_low and lower_high and pct <= short_threshold and not has_short:
        return "short"

    return None
