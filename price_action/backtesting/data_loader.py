"""Data loader for backtesting — reads historical klines and validates them.

Provides functions to:
1. Parse 'YYYY-MM-DD HH:MM:SS' range bounds into epoch milliseconds
2. Load klines for a time range from a JSON kline store
3. Reject malformed input before it reaches the engine

The store is a JSON array whose items are either kline objects
({"open_time", "close_time", "open", "high", "low", "close"}) or raw
Binance kline arrays ([open_time, open, high, low, close, volume,
close_time, ...]).

Usage:
    from price_action.backtesting.data_loader import load_klines

    bars = load_klines("data/BTCUSDT_15m.json", "2023-01-01 00:00:00", None)
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from price_action.backtesting.exceptions import InsufficientDataError, InvalidBarError
from price_action.backtesting.schemas import TIME_FORMAT, Bar
from price_action.common.exceptions import DataLoadError
from price_action.common.logging import get_logger

logger = get_logger("DATA")


def parse_time_bound(text: str) -> int:
    """Convert a 'YYYY-MM-DD HH:MM:SS' UTC timestamp to epoch milliseconds.

    Raises:
        DataLoadError: If the text does not match the expected format.
    """
    try:
        parsed = datetime.strptime(text, TIME_FORMAT).replace(tzinfo=UTC)
    except ValueError as exc:
        raise DataLoadError(
            "Invalid time bound",
            context={"value": text, "expected_format": TIME_FORMAT},
        ) from exc
    return int(parsed.timestamp() * 1000)


def parse_kline(item: dict | list) -> Bar:
    """Build a Bar from a kline object or a raw Binance kline array.

    Raises:
        DataLoadError: If the item has neither shape or bad field values.
    """
    try:
        if isinstance(item, dict):
            return Bar.model_validate(item)
        if isinstance(item, list | tuple) and len(item) >= 7:
            return Bar(
                open_time=int(item[0]),
                open=float(item[1]),
                high=float(item[2]),
                low=float(item[3]),
                close=float(item[4]),
                close_time=int(item[6]),
            )
    except (ValidationError, TypeError, ValueError) as exc:
        raise DataLoadError("Malformed kline", context={"item": item}) from exc

    raise DataLoadError("Unrecognized kline shape", context={"item": item})


def load_klines(
    path: str | Path,
    start: str | None = None,
    end: str | None = None,
) -> list[Bar]:
    """Load klines with ``start <= open_time <= end`` from a JSON store.

    Args:
        path: Path to the JSON kline file.
        start: Inclusive lower bound ('YYYY-MM-DD HH:MM:SS'), or None.
        end: Inclusive upper bound ('YYYY-MM-DD HH:MM:SS'), or None.

    Returns:
        Klines sorted ascending by open_time.

    Raises:
        DataLoadError: If the file cannot be read or parsed.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise DataLoadError("Cannot read kline store", context={"path": str(path)}) from exc
    except json.JSONDecodeError as exc:
        raise DataLoadError(
            "Kline store is not valid JSON",
            context={"path": str(path), "line": exc.lineno},
        ) from exc

    if not isinstance(raw, list):
        raise DataLoadError("Kline store must hold a JSON array", context={"path": str(path)})

    from_ms = parse_time_bound(start) if start is not None else None
    to_ms = parse_time_bound(end) if end is not None else None

    bars = []
    for item in raw:
        bar = parse_kline(item)
        if from_ms is not None and bar.open_time < from_ms:
            continue
        if to_ms is not None and bar.open_time > to_ms:
            continue
        bars.append(bar)

    bars.sort(key=lambda b: b.open_time)
    logger.info(
        "Klines loaded",
        extra={"data": {"path": str(path), "total": len(raw), "in_range": len(bars)}},
    )
    return bars


def validate_bars(bars: Sequence[Bar]) -> None:
    """Reject kline sequences the engine must not see.

    Checks: non-empty, positive prices, low <= open/close <= high,
    close_time >= open_time, strictly increasing open_time.

    Raises:
        InsufficientDataError: If ``bars`` is empty.
        InvalidBarError: On the first kline that breaks the contract.
    """
    if not bars:
        raise InsufficientDataError("No klines to backtest")

    prev_open_time: int | None = None
    for index, bar in enumerate(bars):
        context = {"index": index, "open_time": bar.open_time}

        if min(bar.open, bar.high, bar.low, bar.close) <= 0:
            raise InvalidBarError("Kline has a non-positive price", context=context)
        if not bar.low <= min(bar.open, bar.close) <= max(bar.open, bar.close) <= bar.high:
            raise InvalidBarError("Kline prices are outside its high/low range", context=context)
        if bar.close_time < bar.open_time:
            raise InvalidBarError("Kline closes before it opens", context=context)
        if prev_open_time is not None and bar.open_time <= prev_open_time:
            raise InvalidBarError(
                "Kline timestamps are not strictly increasing",
                context={**context, "previous_open_time": prev_open_time},
            )
        prev_open_time = bar.open_time
