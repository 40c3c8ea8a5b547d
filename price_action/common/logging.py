"""Structured logging setup for the price-action backtester.

Every log line includes: timestamp, level, module tag, message, and structured data.

Usage:
    from price_action.common.logging import get_logger
    logger = get_logger("BACKTEST")
    logger.info("Trade closed", extra={"data": {"side": "long", "profit": 12.5}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

# Module tags for structured logging
MODULE_TAGS = {
    "BACKTEST",
    "DATA",
    "CONFIG",
    "SYSTEM",
    "TEST",
}

_LOGGER_PREFIX = "price_action"


class StructuredFormatter(logging.Formatter):
    """Formats log records as structured, human-readable lines.

    Output format:
        2025-02-15T10:30:00Z | INFO | BACKTEST | Trade closed | {"side": "long"}
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
        level = record.levelname
        module_tag = getattr(record, "module_tag", "SYSTEM")

        # Extract structured data from extra
        data = getattr(record, "data", None)
        if data is not None:
            try:
                data_str = json.dumps(data, default=str)
            except (TypeError, ValueError):
                data_str = str(data)
        else:
            data_str = ""

        parts = [timestamp, level, module_tag, record.getMessage()]
        if data_str:
            parts.append(data_str)

        return " | ".join(parts)


class ModuleTagLogger(logging.LoggerAdapter):
    """Logger adapter that injects module_tag and supports structured data.

    Usage:
        logger = get_logger("DATA")
        logger.info("Loaded klines", extra={"data": {"count": 960}})
    """

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        # Inject module_tag into the record
        extra = kwargs.get("extra", {})
        extra["module_tag"] = self.extra.get("module_tag", "SYSTEM")
        kwargs["extra"] = extra
        return msg, kwargs


# Cache loggers to avoid duplicate handlers
_loggers: dict[str, ModuleTagLogger] = {}


def get_logger(module_tag: str) -> ModuleTagLogger:
    """Get a structured logger with the given module tag.

    Args:
        module_tag: One of the MODULE_TAGS (BACKTEST, DATA, CONFIG, etc.)

    Returns:
        A logger adapter that injects the module tag into every log line.
    """
    if module_tag in _loggers:
        return _loggers[module_tag]

    logger = logging.getLogger(f"{_LOGGER_PREFIX}.{module_tag.lower()}")

    # Only add handler if this logger doesn't have one yet
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

    adapter = ModuleTagLogger(logger, {"module_tag": module_tag})
    _loggers[module_tag] = adapter
    return adapter


def configure_logging(level: str | int = "INFO") -> None:
    """Set the minimum level on every project logger.

    Loggers are created at DEBUG so library users see everything by
    default; the CLI narrows that once at startup.

    Args:
        level: A level name ("INFO", "warning") or a logging level int.

    Raises:
        ValueError: If the level name is not a known logging level.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            msg = f"Unknown log level: {level}"
            raise ValueError(msg)
        level = resolved

    for tag in MODULE_TAGS:
        get_logger(tag).logger.setLevel(level)
