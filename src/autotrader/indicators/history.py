"""Bounded per-symbol tick history.

Each symbol gets a fixed-capacity ring buffer (collections.deque with
maxlen); the oldest tick is evicted on overflow. Owned by the market
data poller; readers receive tuple copies.
"""

from collections import deque

from autotrader.models import MarketTick


class TickHistory:
    """Fixed-capacity ring buffers of MarketTicks keyed by symbol.

    Args:
        capacity: Maximum ticks retained per symbol.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._buffers: dict[str, deque[MarketTick]] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, tick: MarketTick) -> bool:
        """Add a tick to its symbol's buffer.

        A tick whose timestamp is not newer than the last buffered tick
        is ignored, so re-polling an unchanged quote does not skew the
        indicators.

        Returns:
            True if the tick was stored.
        """
        buffer = self._buffers.get(tick.symbol)
        if buffer is None:
            buffer = deque(maxlen=self._capacity)
            self._buffers[tick.symbol] = buffer
        elif buffer and tick.timestamp <= buffer[-1].timestamp:
            return False
        buffer.append(tick)
        return True

    def get(self, symbol: str) -> tuple[MarketTick, ...]:
        """Return the buffered ticks for a symbol, oldest first."""
        buffer = self._buffers.get(symbol)
        return tuple(buffer) if buffer is not None else ()

    def __len__(self) -> int:
        return len(self._buffers)

    def size(self, symbol: str) -> int:
        buffer = self._buffers.get(symbol)
        return len(buffer) if buffer is not None else 0
