"""Tests for MarketDataPoller.

Verifies:
- Successful polls populate history and serve consistent snapshots
- Provider failures and timeouts make snapshots fail until a poll succeeds
- Stale and missing symbols raise FeedUnavailable
- Re-polled ticks with the same timestamp are not duplicated
- Start/stop lifecycle
"""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from autotrader.exceptions import FeedUnavailable
from autotrader.indicators.history import TickHistory
from autotrader.market_data.poller import MarketDataPoller
from autotrader.market_data.provider import MarketDataProvider
from autotrader.models import MarketTick


def _tick(symbol: str, price: str, ts: float) -> MarketTick:
    return MarketTick(
        symbol=symbol,
        price=Decimal(price),
        change_24h_pct=Decimal("0"),
        volume=Decimal("0"),
        timestamp=ts,
    )


class _Clock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def provider() -> AsyncMock:
    provider = AsyncMock(spec=MarketDataProvider)
    provider.fetch_latest.return_value = [
        _tick("BTC", "45000", 1000.0),
        _tick("ETH", "2500", 1000.0),
    ]
    return provider


@pytest.fixture
def clock() -> _Clock:
    return _Clock()


@pytest.fixture
def poller(provider: AsyncMock, clock: _Clock) -> MarketDataPoller:
    return MarketDataPoller(
        provider,
        ["BTC", "ETH"],
        TickHistory(capacity=50),
        poll_interval=0.01,
        fetch_timeout=0.05,
        max_tick_age=120.0,
        clock=clock,
    )


@pytest.mark.asyncio
async def test_snapshot_after_poll(poller: MarketDataPoller) -> None:
    await poller.poll_once()
    snapshot = await poller.get_snapshot()

    assert set(snapshot) == {"BTC", "ETH"}
    btc = snapshot["BTC"]
    assert btc.tick.price == Decimal("45000")
    assert btc.history[-1] == btc.tick
    assert poller.last_error is None
    assert poller.get_latest_tick("ETH").price == Decimal("2500")


@pytest.mark.asyncio
async def test_history_accumulates_across_polls(
    poller: MarketDataPoller, provider: AsyncMock
) -> None:
    await poller.poll_once()
    provider.fetch_latest.return_value = [
        _tick("BTC", "45100", 1015.0),
        _tick("ETH", "2510", 1015.0),
    ]
    await poller.poll_once()

    snapshot = await poller.get_snapshot(["BTC"])
    assert [t.price for t in snapshot["BTC"].history] == [Decimal("45000"), Decimal("45100")]
    assert snapshot["BTC"].tick.price == Decimal("45100")


@pytest.mark.asyncio
async def test_same_timestamp_not_duplicated(poller: MarketDataPoller) -> None:
    await poller.poll_once()
    await poller.poll_once()
    snapshot = await poller.get_snapshot()
    assert len(snapshot["BTC"].history) == 1


@pytest.mark.asyncio
async def test_provider_failure_blocks_snapshot_until_recovery(
    poller: MarketDataPoller, provider: AsyncMock
) -> None:
    await poller.poll_once()
    good = provider.fetch_latest.return_value
    provider.fetch_latest.side_effect = FeedUnavailable("exchange down")

    with pytest.raises(FeedUnavailable):
        await poller.poll_once()
    assert poller.last_error == "exchange down"
    with pytest.raises(FeedUnavailable):
        await poller.get_snapshot()

    provider.fetch_latest.side_effect = None
    provider.fetch_latest.return_value = good
    await poller.poll_once()
    assert poller.last_error is None
    assert "BTC" in await poller.get_snapshot()


@pytest.mark.asyncio
async def test_fetch_timeout_is_feed_unavailable(
    poller: MarketDataPoller, provider: AsyncMock
) -> None:
    async def _slow(symbols: list[str]) -> list[MarketTick]:
        await asyncio.sleep(1)
        return []

    provider.fetch_latest.side_effect = _slow
    with pytest.raises(FeedUnavailable):
        await poller.poll_once()
    assert "timed out" in poller.last_error


@pytest.mark.asyncio
async def test_stale_tick_raises(poller: MarketDataPoller, clock: _Clock) -> None:
    await poller.poll_once()
    clock.now += 121.0
    with pytest.raises(FeedUnavailable, match="stale"):
        await poller.get_snapshot()


@pytest.mark.asyncio
async def test_missing_symbol_raises(poller: MarketDataPoller) -> None:
    with pytest.raises(FeedUnavailable):
        await poller.get_snapshot()


@pytest.mark.asyncio
async def test_start_and_stop(poller: MarketDataPoller, provider: AsyncMock) -> None:
    await poller.start()
    assert poller.is_running is True
    await asyncio.sleep(0.05)
    await poller.stop()

    assert poller.is_running is False
    assert provider.fetch_latest.await_count >= 1


@pytest.mark.asyncio
async def test_loop_survives_failures(poller: MarketDataPoller, provider: AsyncMock) -> None:
    provider.fetch_latest.side_effect = FeedUnavailable("down")
    await poller.start()
    await asyncio.sleep(0.05)
    await poller.stop()
    assert provider.fetch_latest.await_count >= 2
