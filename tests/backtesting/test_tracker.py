"""Tests for RollingExtremumTracker — warm-up, running extremes, eviction."""

from __future__ import annotations

import pytest

from price_action.backtesting.tracker import RollingExtremumTracker
from tests.factories import flat_bars, make_bar, random_walk_bars


class TestWarmUp:
    """The tracker reports nothing until a full look-back is held."""

    def test_not_ready_before_look_back(self):
        tracker = RollingExtremumTracker(look_back_count=20)
        for bar in flat_bars(19):
            tracker.update(bar)
            assert tracker.is_ready is False
            assert tracker.last_two_highs() is None
            assert tracker.last_two_lows() is None

    def test_ready_at_look_back(self):
        tracker = RollingExtremumTracker(look_back_count=20)
        for bar in flat_bars(20):
            tracker.update(bar)
        assert tracker.is_ready is True
        assert tracker.last_two_highs() == (100.0, 100.0)
        assert tracker.last_two_lows() == (100.0, 100.0)

    def test_look_back_below_two_rejected(self):
        with pytest.raises(ValueError, match="look_back_count"):
            RollingExtremumTracker(look_back_count=1)


class TestRunningExtremes:
    """Running max/min of close over the window."""

    def test_new_high_shows_in_last_two(self):
        tracker = RollingExtremumTracker(look_back_count=20)
        for bar in flat_bars(20):
            tracker.update(bar)
        tracker.update(make_bar(20, close=102.0, open_=100.0))
        assert tracker.last_two_highs() == (100.0, 102.0)
        assert tracker.last_two_lows() == (100.0, 100.0)

    def test_new_low_shows_in_last_two(self):
        tracker = RollingExtremumTracker(look_back_count=20)
        for bar in flat_bars(20):
            tracker.update(bar)
        tracker.update(make_bar(20, close=97.0, open_=100.0))
        assert tracker.last_two_highs() == (100.0, 100.0)
        assert tracker.last_two_lows() == (100.0, 97.0)

    def test_sequences_are_monotone(self):
        tracker = RollingExtremumTracker(look_back_count=20)
        for bar in random_walk_bars(200, seed=7):
            tracker.update(bar)
            highs = tracker.highs
            lows = tracker.lows
            assert all(a <= b for a, b in zip(highs, highs[1:]))
            assert all(a >= b for a, b in zip(lows, lows[1:]))

    def test_extremes_are_closes_in_window(self):
        tracker = RollingExtremumTracker(look_back_count=5)
        for i, close in enumerate([3.0, 1.0, 4.0, 1.5, 5.0]):
            tracker.update(make_bar(i, close=close))
        assert tracker.highs == (3.0, 3.0, 4.0, 4.0, 5.0)
        assert tracker.lows == (3.0, 1.0, 1.0, 1.0, 1.0)


class TestEviction:
    """The window never holds more than N klines after an update."""

    def test_lengths_stay_aligned_and_bounded(self):
        tracker = RollingExtremumTracker(look_back_count=10)
        for bar in random_walk_bars(50):
            tracker.update(bar)
            assert len(tracker) <= 10
            assert len(tracker.bars) == len(tracker.highs) == len(tracker.lows)
        assert len(tracker) == 10

    def test_oldest_bar_evicted(self):
        tracker = RollingExtremumTracker(look_back_count=3)
        bars = [make_bar(i, close=c) for i, c in enumerate([90.0, 100.0, 100.0, 105.0])]
        for bar in bars:
            tracker.update(bar)
        assert tracker.bars == tuple(bars[1:])

    def test_evicted_extreme_no_longer_counts(self):
        tracker = RollingExtremumTracker(look_back_count=3)
        for i, close in enumerate([90.0, 100.0, 100.0, 105.0]):
            tracker.update(make_bar(i, close=close))
        # 90 was still in the window when the extremes were computed
        assert tracker.last_two_lows() == (90.0, 90.0)

        tracker.update(make_bar(4, close=95.0, open_=100.0))
        assert tracker.last_two_lows() == (100.0, 95.0)
        assert tracker.last_two_highs() == (105.0, 105.0)
