"""Tests for the read-only JSON API and control actions."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from autotrader.activity.log import ActivityEntry, ActivityKind, ActivityLog
from autotrader.api.app import create_app
from autotrader.config import RiskSettings, StrategyVariant
from autotrader.execution.simulated import SimulatedGateway
from autotrader.indicators.engine import IndicatorEngine
from autotrader.ledger.ledger import AccountLedger
from autotrader.market_data.poller import MarketDataPoller
from autotrader.models import PositionSide
from autotrader.risk.manager import RiskManager
from autotrader.scheduler import SchedulerLoop
from autotrader.signals.generator import SignalGenerator


@pytest.fixture
def scheduler(ledger: AccountLedger) -> SchedulerLoop:
    poller = AsyncMock(spec=MarketDataPoller)
    poller.get_snapshot.return_value = {}
    poller.symbols = ["BTC", "ETH"]
    poller.last_error = None

    generator = MagicMock(spec=SignalGenerator)
    generator.variant = StrategyVariant.MOMENTUM

    activity_log = ActivityLog(100)
    activity_log.extend([
        ActivityEntry(ActivityKind.SKIPPED, "feed_unavailable", details={"error": "down"}),
        ActivityEntry(ActivityKind.EXECUTED, "open_long", symbol="BTC", details={"size": "0.01"}),
    ])

    return SchedulerLoop(
        poller=poller,
        indicator_engine=MagicMock(spec=IndicatorEngine),
        signal_generator=generator,
        risk_manager=RiskManager(RiskSettings(), Decimal("1000")),
        gateway=SimulatedGateway(),
        ledger=ledger,
        activity_log=activity_log,
        cycle_interval=60.0,
    )


@pytest.fixture
def client(scheduler: SchedulerLoop) -> TestClient:
    app = create_app()
    app.state.scheduler = scheduler
    return TestClient(app)


def test_status(client: TestClient) -> None:
    response = client.get("/api/status")
    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "idle"
    assert body["strategy"] == "momentum"
    assert body["mode"] == "simulation"
    assert body["symbols"] == ["BTC", "ETH"]
    assert body["account"]["balance"] == "10000"
    assert body["stats"]["win_rate"] is None


def test_account_and_positions(client: TestClient, ledger: AccountLedger) -> None:
    asyncio.run(
        ledger.open_position("BTC", PositionSide.LONG, Decimal("0.01"), Decimal("45000"))
    )

    account = client.get("/api/account").json()
    assert Decimal(account["balance"]) == Decimal("9550")
    assert account["open_positions"] == 1

    positions = client.get("/api/positions").json()
    assert len(positions) == 1
    assert positions[0]["symbol"] == "BTC"
    assert positions[0]["side"] == "long"
    assert positions[0]["size"] == "0.01"
    assert Decimal(positions[0]["cost"]) == Decimal("450")


def test_trades(client: TestClient, ledger: AccountLedger) -> None:
    async def _round_trip() -> None:
        position = await ledger.open_position(
            "ETH", PositionSide.LONG, Decimal("1"), Decimal("2500")
        )
        await ledger.close_position(position.id, Decimal("2600"))

    asyncio.run(_round_trip())

    trades = client.get("/api/trades").json()
    assert [t["side"] for t in trades] == ["buy", "sell"]
    assert trades[0]["realized_profit"] is None
    assert Decimal(trades[1]["realized_profit"]) == Decimal("100")

    latest = client.get("/api/trades", params={"limit": 1}).json()
    assert len(latest) == 1
    assert latest[0]["side"] == "sell"


def test_activity_filter(client: TestClient) -> None:
    entries = client.get("/api/activity").json()
    assert [e["reason"] for e in entries] == ["feed_unavailable", "open_long"]

    executed = client.get("/api/activity", params={"kind": "executed"}).json()
    assert len(executed) == 1
    assert executed[0]["kind"] == "executed"
    assert executed[0]["symbol"] == "BTC"


def test_missing_scheduler_is_503() -> None:
    client = TestClient(create_app())
    assert client.get("/api/status").status_code == 503


def test_start_and_stop_actions(scheduler: SchedulerLoop) -> None:
    app = create_app()
    app.state.scheduler = scheduler

    with TestClient(app) as client:
        started = client.post("/actions/start").json()
        assert started["state"] == "running"

        stopped = client.post("/actions/stop").json()
        assert stopped["state"] == "idle"
