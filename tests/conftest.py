"""Root test configuration — shared fixtures for all test modules."""

from __future__ import annotations

import logging

import pytest

from price_action.common.config import Settings, get_settings
from price_action.common.logging import (
    MODULE_TAGS,
    StructuredFormatter,
    configure_logging,
    get_logger,
)

# ─── Clear cached settings so test env vars are used ───
get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Settings as seen by the code under test."""
    return get_settings()


@pytest.fixture(autouse=True)
def _reset_log_level():
    """Undo any log level a test (or the CLI) narrowed."""
    yield
    configure_logging("DEBUG")


# ─── Log Capture ───


class ListHandler(logging.Handler):
    """Keeps every record it receives, formatted like the stdout handler."""

    def __init__(self) -> None:
        super().__init__()
        self.setFormatter(StructuredFormatter())
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    @property
    def lines(self) -> list[str]:
        return [self.format(r) for r in self.records]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@pytest.fixture
def captured_logs():
    """Attach a ListHandler to every project logger for the test's duration.

    Project loggers do not propagate, so caplog cannot see them.
    """
    handler = ListHandler()
    loggers = [get_logger(tag).logger for tag in MODULE_TAGS]
    for logger in loggers:
        logger.addHandler(handler)
    yield handler
    for logger in loggers:
        logger.removeHandler(handler)
