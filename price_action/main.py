"""Command-line entry point for the price-action backtester.

Run with: price-action -c config.json -m backtest
      or: python -m price_action -c config.json -m b
"""

from __future__ import annotations

import argparse
from pathlib import Path

from price_action.backtesting.config import load_setting_config
from price_action.backtesting.data_loader import load_klines
from price_action.backtesting.engine import run_backtest
from price_action.backtesting.exceptions import BacktestError
from price_action.common.config import get_settings
from price_action.common.exceptions import PriceActionError
from price_action.common.logging import configure_logging, get_logger

logger = get_logger("SYSTEM")

MODES = {
    "backtest": "backtest",
    "b": "backtest",
    "hypertune": "hypertune",
    "h": "hypertune",
}


def parse_mode(value: str) -> str:
    """Map a mode name or its one-letter shorthand to the canonical mode."""
    try:
        return MODES[value]
    except KeyError:
        msg = f"Invalid mode: {value}"
        raise argparse.ArgumentTypeError(msg) from None


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="price-action",
        description="Backtest the breakout strategy over historical klines.",
    )
    parser.add_argument(
        "-c",
        "--config",
        dest="config_path",
        default=settings.config_path,
        help="JSON setting file (default: %(default)s)",
    )
    parser.add_argument(
        "-m",
        "--mode",
        type=parse_mode,
        required=True,
        help="backtest (b) or hypertune (h)",
    )
    parser.add_argument(
        "-k",
        "--klines",
        dest="klines_path",
        default=settings.klines_path,
        help="JSON kline store (default: data/<SYMBOL>.json)",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Minimum log level (default: %(default)s)",
    )
    return parser


def resolve_klines_path(klines_path: str | None) -> str:
    """Explicit path if given, else the store for the configured symbol."""
    if klines_path:
        return klines_path
    return str(Path("data") / f"{get_settings().symbol}.json")


def run(config_path: str, mode: str, klines_path: str | None) -> None:
    """Load inputs and execute the requested mode.

    Raises:
        BacktestError: If the mode is not implemented.
    """
    config = load_setting_config(config_path)
    klines_path = resolve_klines_path(klines_path)
    logger.info(
        "Starting",
        extra={"data": {"mode": mode, "config": config_path, "klines": klines_path}},
    )

    if mode == "hypertune":
        raise BacktestError("Hypertune mode is not implemented", context={"mode": mode})

    bars = load_klines(klines_path, config.start, config.end)
    logger.info("Klines ready", extra={"data": {"count": len(bars)}})
    result = run_backtest(config, bars)
    logger.info(
        "Summary",
        extra={
            "data": {
                "final_balance": round(result.final_balance, 4),
                "win_rate": result.win_rate,
                "roi_pct": result.roi_pct,
                "net_profit": round(result.net_profit, 4),
                "max_drawdown_pct": result.max_drawdown_pct,
            }
        },
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        configure_logging(args.log_level)
    except ValueError as exc:
        logger.error(str(exc))
        return 2

    try:
        run(args.config_path, args.mode, args.klines_path)
    except BacktestError as exc:
        logger.error(str(exc), extra={"data": exc.context})
        return 2
    except PriceActionError as exc:
        logger.error(str(exc), extra={"data": exc.context})
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
