"""Tests for kline loading, time-range parsing and boundary validation."""

from __future__ import annotations

import json

import pytest

from price_action.backtesting.data_loader import (
    load_klines,
    parse_kline,
    parse_time_bound,
    validate_bars,
)
from price_action.backtesting.exceptions import InsufficientDataError, InvalidBarError
from price_action.backtesting.schemas import Bar
from price_action.common.exceptions import DataLoadError
from tests.factories import BASE_TIME_MS, INTERVAL_MS, flat_bars, make_bar


def _kline_dict(index: int, close: float = 100.0) -> dict:
    return make_bar(index, close=close).model_dump()


def _binance_row(index: int, close: float = 100.0) -> list:
    open_time = BASE_TIME_MS + index * INTERVAL_MS
    return [
        open_time,
        str(close),
        str(close),
        str(close),
        str(close),
        "12.5",
        open_time + INTERVAL_MS - 1,
        "1250.0",
        42,
        "6.0",
        "600.0",
        "0",
    ]


class TestParseTimeBound:
    def test_epoch_millis(self):
        assert parse_time_bound("2023-01-01 00:00:00") == BASE_TIME_MS

    def test_invalid_format_raises(self):
        with pytest.raises(DataLoadError, match="Invalid time bound"):
            parse_time_bound("2023/01/01")


class TestParseKline:
    def test_dict_kline(self):
        bar = parse_kline(_kline_dict(0, close=101.5))
        assert bar == make_bar(0, close=101.5)

    def test_binance_row(self):
        bar = parse_kline(_binance_row(3, close=99.25))
        assert bar.open_time == BASE_TIME_MS + 3 * INTERVAL_MS
        assert bar.close_time == bar.open_time + INTERVAL_MS - 1
        assert bar.close == 99.25
        assert bar.high == 99.25

    def test_missing_field_raises(self):
        with pytest.raises(DataLoadError, match="Malformed kline"):
            parse_kline({"open_time": 0, "close": 1.0})

    def test_short_row_raises(self):
        with pytest.raises(DataLoadError, match="Unrecognized kline shape"):
            parse_kline([0, "1", "1"])


class TestLoadKlines:
    def test_loads_and_sorts(self, tmp_path):
        path = tmp_path / "klines.json"
        path.write_text(json.dumps([_kline_dict(2), _binance_row(0), _kline_dict(1)]))
        bars = load_klines(path)
        assert [b.open_time for b in bars] == [
            BASE_TIME_MS,
            BASE_TIME_MS + INTERVAL_MS,
            BASE_TIME_MS + 2 * INTERVAL_MS,
        ]
        assert all(isinstance(b, Bar) for b in bars)

    def test_filters_by_range(self, tmp_path):
        path = tmp_path / "klines.json"
        path.write_text(json.dumps([_kline_dict(i) for i in range(8)]))
        # 15m klines: index 2 opens at 00:30, index 5 at 01:15
        bars = load_klines(path, "2023-01-01 00:30:00", "2023-01-01 01:15:00")
        assert [b.open_time for b in bars] == [
            BASE_TIME_MS + i * INTERVAL_MS for i in range(2, 6)
        ]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(DataLoadError, match="Cannot read"):
            load_klines(tmp_path / "missing.json")

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "klines.json"
        path.write_text("[{not json")
        with pytest.raises(DataLoadError, match="not valid JSON"):
            load_klines(path)

    def test_non_array_raises(self, tmp_path):
        path = tmp_path / "klines.json"
        path.write_text(json.dumps({"klines": []}))
        with pytest.raises(DataLoadError, match="JSON array"):
            load_klines(path)

    def test_logs_counts(self, tmp_path, captured_logs):
        path = tmp_path / "klines.json"
        path.write_text(json.dumps([_kline_dict(i) for i in range(3)]))
        load_klines(path)
        assert "Klines loaded" in captured_logs.text
        assert "DATA" in captured_logs.text


class TestValidateBars:
    def test_valid_sequence_passes(self):
        validate_bars(flat_bars(5) + [make_bar(5, close=102.0, open_=100.0)])

    def test_empty_raises(self):
        with pytest.raises(InsufficientDataError):
            validate_bars([])

    def test_non_positive_price_raises(self):
        bars = [make_bar(0, close=100.0), make_bar(1, close=0.0, open_=1.0)]
        with pytest.raises(InvalidBarError, match="non-positive") as exc_info:
            validate_bars(bars)
        assert exc_info.value.context["index"] == 1

    def test_close_outside_range_raises(self):
        with pytest.raises(InvalidBarError, match="high/low range"):
            validate_bars([make_bar(0, close=100.0, high=99.0)])

    def test_high_below_low_raises(self):
        with pytest.raises(InvalidBarError, match="high/low range"):
            validate_bars([make_bar(0, close=100.0, high=98.0, low=101.0)])

    def test_close_before_open_time_raises(self):
        bar = make_bar(0, close=100.0).model_copy(update={"close_time": 0})
        with pytest.raises(InvalidBarError, match="closes before it opens"):
            validate_bars([bar])

    def test_duplicate_timestamp_raises(self):
        with pytest.raises(InvalidBarError, match="strictly increasing"):
            validate_bars([make_bar(3, close=100.0), make_bar(3, close=101.0)])
