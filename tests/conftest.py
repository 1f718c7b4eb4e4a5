"""
Shared pytest fixtures for Janus tests.
"""
from decimal import Decimal

import pytest
from prometheus_client import CollectorRegistry

from janus.core.clock import PeriodClock
from janus.core.settings import AssetSpec, TradingSettings
from janus.services.ledger import PositionLedger
from janus.services.metrics import MetricsEmitter

# A real period boundary: 2025-01-18 00:00:00 UTC
PERIOD_TS = 1737158400


@pytest.fixture
def period_ts() -> int:
    return PERIOD_TS


@pytest.fixture
def clock():
    """PeriodClock frozen one second into PERIOD_TS; tests pass `now` explicitly."""
    return PeriodClock(time_source=lambda: PERIOD_TS + 1.0)


@pytest.fixture
def metrics():
    """MetricsEmitter with an isolated registry."""
    return MetricsEmitter(registry=CollectorRegistry())


@pytest.fixture
def ledger():
    return PositionLedger()


@pytest.fixture
def trading_settings():
    return TradingSettings(
        limit_price=Decimal("0.45"),
        fixed_trade_amount=Decimal("1"),
        poll_interval_ms=1000,
        dispatch_window_seconds=2.0,
        rediscovery_interval_seconds=5.0,
    )


@pytest.fixture
def btc_only_assets():
    """BTC enabled, XRP configured but disabled."""
    return (
        AssetSpec("BTC", True, ("btc",), include_previous=True),
        AssetSpec("XRP", False, ("xrp",)),
    )
