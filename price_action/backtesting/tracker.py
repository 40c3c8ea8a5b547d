"""Rolling look-back window of klines with running close extremes.

On every update the forward running maximum and minimum of ``close`` are
recomputed over the whole window, including the bar just appended, and
only then is the oldest bar evicted. The last two entries of each
extremum sequence therefore answer "did this close set a new high/low
for the look-back window?".

Usage:
    tracker = RollingExtremumTracker(look_back_count=20)
    tracker.update(bar)
    highs = tracker.last_two_highs()  # (prev, curr) or None until warm
"""

from __future__ import annotations

import math
from collections import deque

from price_action.backtesting.schemas import Bar


class RollingExtremumTracker:
    """Bounded kline window plus aligned running-max/min close sequences.

    The three deques always have equal length. ``last_two_highs()`` and
    ``last_two_lows()`` return ``None`` until at least ``look_back_count``
    bars have been seen.

    Attributes:
        look_back_count: Window length N.
    """

    def __init__(self, look_back_count: int = 20) -> None:
        if look_back_count < 2:
            msg = f"look_back_count must be >= 2, got {look_back_count}"
            raise ValueError(msg)
        self.look_back_count = look_back_count
        self._bars: deque[Bar] = deque()
        self._highs: deque[float] = deque()
        self._lows: deque[float] = deque()

    def __len__(self) -> int:
        return len(self._bars)

    @property
    def is_ready(self) -> bool:
        """True once the window holds a full look-back of bars."""
        return len(self._bars) >= self.look_back_count

    @property
    def bars(self) -> tuple[Bar, ...]:
        return tuple(self._bars)

    @property
    def highs(self) -> tuple[float, ...]:
        return tuple(self._highs)

    @property
    def lows(self) -> tuple[float, ...]:
        return tuple(self._lows)

    def update(self, bar: Bar) -> None:
        """Append a bar, recompute running extremes, then trim to N bars."""
        self._bars.append(bar)

        highest = -math.inf
        lowest = math.inf
        self._highs.clear()
        self._lows.clear()
        for kline in self._bars:
            highest = max(highest, kline.close)
            lowest = min(lowest, kline.close)
            self._highs.append(highest)
            self._lows.append(lowest)

        if len(self._bars) > self.look_back_count:
            self._bars.popleft()
            self._highs.popleft()
            self._lows.popleft()

    def last_two_highs(self) -> tuple[float, float] | None:
        """Previous and current running-max close, or None if not ready."""
        if not self.is_ready:
            return None
        return self._highs[-2], self._highs[-1]

    def last_two_lows(self) -> tuple[float, float] | None:
        """Previous and current running-min close, or None if not ready."""
        if not self.is_ready:
            return None
        return self._lows[-2], self._lows[-1]
