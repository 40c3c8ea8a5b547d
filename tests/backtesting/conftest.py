"""Shared fixtures for backtesting tests."""

from __future__ import annotations

import pytest

from price_action.backtesting.metrics import MetricsAggregator
from price_action.backtesting.schemas import SettingConfig, TradeCloseEvent
from price_action.backtesting.trade_book import TradeBook


@pytest.fixture
def default_config() -> SettingConfig:
    """A 20-kline look-back config with round numbers."""
    return SettingConfig(
        initial_capital=10_000.0,
        fee_rate=0.001,
        kline_percentage=0.01,
        entry_portion=0.1,
    )


@pytest.fixture
def short_window_config() -> SettingConfig:
    """Config with a 3-kline look-back for compact scenarios."""
    return SettingConfig(
        initial_capital=10_000.0,
        fee_rate=0.001,
        kline_percentage=0.01,
        entry_portion=0.1,
        look_back_count=3,
    )


@pytest.fixture
def metrics(default_config: SettingConfig) -> MetricsAggregator:
    return MetricsAggregator(default_config.initial_capital)


@pytest.fixture
def book(default_config: SettingConfig, metrics: MetricsAggregator) -> TradeBook:
    return TradeBook(default_config, metrics)


@pytest.fixture
def closures() -> list[TradeCloseEvent]:
    """Collects closure records; pass ``closures.append`` as the engine sink."""
    return []
