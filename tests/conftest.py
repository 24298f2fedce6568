"""Shared test fixtures for the autotrader agent."""

from decimal import Decimal

import pytest

from autotrader.config import RiskSettings, StrategySettings
from autotrader.ledger.ledger import AccountLedger


@pytest.fixture
def strategy_settings() -> StrategySettings:
    """Default strategy settings (trend following, min confidence 70)."""
    return StrategySettings()


@pytest.fixture
def risk_settings() -> RiskSettings:
    """Default risk settings (10% position cap, 2% risk, 5% stop)."""
    return RiskSettings()


@pytest.fixture
def ledger() -> AccountLedger:
    """Fresh simulation ledger with a 10000 starting balance."""
    return AccountLedger(Decimal("10000"))
