"""Market data poller -- polls the provider and serves consistent snapshots.

Runs as an independent background task next to the scheduler. Owns the
per-symbol tick history ring buffers and the latest-tick cache; both are
updated together under an asyncio.Lock, and get_snapshot() copies a
symbol's latest tick and its history under the same lock, so a cycle
never mixes fields from two different ticks of one symbol.
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass

from autotrader.exceptions import FeedUnavailable
from autotrader.indicators.history import TickHistory
from autotrader.logging import get_logger
from autotrader.market_data.provider import MarketDataProvider
from autotrader.models import MarketTick

logger = get_logger(__name__)


@dataclass(frozen=True)
class SymbolSnapshot:
    """Latest tick plus the history it belongs to (last element is ``tick``)."""

    tick: MarketTick
    history: tuple[MarketTick, ...]


class MarketDataPoller:
    """Polls a MarketDataProvider at a fixed interval and caches results.

    Args:
        provider: The market data source.
        symbols: Symbols to poll.
        history: Tick ring buffers owned by this poller.
        poll_interval: Seconds between polls.
        fetch_timeout: Seconds before a fetch is abandoned.
        max_tick_age: Seconds after which a cached tick is stale.
        clock: Time source (Unix seconds), injectable for tests.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        symbols: list[str],
        history: TickHistory,
        poll_interval: float = 15.0,
        fetch_timeout: float = 10.0,
        max_tick_age: float = 120.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._provider = provider
        self._symbols = list(symbols)
        self._history = history
        self._poll_interval = poll_interval
        self._fetch_timeout = fetch_timeout
        self._max_tick_age = max_tick_age
        self._clock = clock
        self._latest: dict[str, tuple[MarketTick, float]] = {}
        self._last_error: str | None = None
        self._lock = asyncio.Lock()
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def symbols(self) -> list[str]:
        return list(self._symbols)

    @property
    def last_error(self) -> str | None:
        """Error from the most recent poll, None if it succeeded."""
        return self._last_error

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Begin polling in the background."""
        if self._running:
            logger.warning("market_data_poller_already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info(
            "market_data_poller_started",
            symbols=self._symbols,
            poll_interval=self._poll_interval,
        )

    async def stop(self) -> None:
        """Stop polling gracefully."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("market_data_poller_stopped")

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except FeedUnavailable as exc:
                logger.warning("market_data_poll_failed", error=str(exc))
            except Exception:
                logger.warning("market_data_poll_error", exc_info=True)
            if self._running:
                await asyncio.sleep(self._poll_interval)

    async def poll_once(self) -> list[MarketTick]:
        """Fetch the latest ticks once and update history and cache.

        Returns:
            The fetched ticks.

        Raises:
            FeedUnavailable: If the provider fails or times out. The
                failure is remembered so the next snapshot request fails
                too, until a poll succeeds.
        """
        try:
            ticks = await asyncio.wait_for(
                self._provider.fetch_latest(self._symbols),
                timeout=self._fetch_timeout,
            )
        except asyncio.TimeoutError as exc:
            self._last_error = f"fetch timed out after {self._fetch_timeout}s"
            raise FeedUnavailable(self._last_error) from exc
        except FeedUnavailable as exc:
            self._last_error = str(exc)
            raise

        received_at = self._clock()
        async with self._lock:
            for tick in ticks:
                if self._history.append(tick):
                    self._latest[tick.symbol] = (tick, received_at)
                elif tick.symbol in self._latest:
                    cached_tick, _ = self._latest[tick.symbol]
                    self._latest[tick.symbol] = (cached_tick, received_at)
            self._last_error = None

        logger.debug("market_data_polled", count=len(ticks))
        return ticks

    async def get_snapshot(
        self, symbols: list[str] | None = None
    ) -> dict[str, SymbolSnapshot]:
        """Return a consistent snapshot for each symbol.

        Args:
            symbols: Symbols to include; defaults to all polled symbols.

        Raises:
            FeedUnavailable: If the last poll failed, or any symbol has
                no cached tick or a stale one.
        """
        wanted = symbols if symbols is not None else self._symbols
        now = self._clock()
        async with self._lock:
            if self._last_error is not None:
                raise FeedUnavailable(f"last poll failed: {self._last_error}")

            result: dict[str, SymbolSnapshot] = {}
            for symbol in wanted:
                entry = self._latest.get(symbol)
                if entry is None:
                    raise FeedUnavailable(f"No market data for {symbol}")
                tick, received_at = entry
                age = now - received_at
                if age > self._max_tick_age:
                    raise FeedUnavailable(
                        f"Market data for {symbol} is stale ({age:.0f}s old)"
                    )
                result[symbol] = SymbolSnapshot(
                    tick=tick, history=self._history.get(symbol)
                )
            return result

    def get_latest_tick(self, symbol: str) -> MarketTick | None:
        """Return the cached tick for a symbol, or None."""
        entry = self._latest.get(symbol)
        return entry[0] if entry is not None else None
