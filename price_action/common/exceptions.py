"""Custom exceptions for the price-action backtester.

All modules should raise these exceptions instead of generic ones.
The CLI catches PriceActionError at the top level, logs it with its
context, and exits non-zero.
"""

from __future__ import annotations


class PriceActionError(Exception):
    """Base exception for all price-action errors.

    Args:
        message: Human-readable error description.
        context: Optional dict of structured data for logging/debugging.
    """

    def __init__(self, message: str, context: dict | None = None) -> None:
        super().__init__(message)
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{super().__str__()} | context={self.context}"
        return super().__str__()


class ConfigError(PriceActionError):
    """Strategy configuration file is missing, unreadable, or invalid."""


class DataLoadError(PriceActionError):
    """Failed to read or parse historical klines from the bar store."""
