"""Abstract exchange client interface.

Market data and live execution depend only on this interface, keeping
the ccxt-specific details isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod


class ExchangeClient(ABC):
    """Abstract base class for exchange API clients."""

    @abstractmethod
    async def connect(self) -> None:
        """Initialize connection and load markets."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources (CRITICAL for ccxt async)."""
        ...

    @abstractmethod
    async def fetch_tickers(self, symbols: list[str] | None = None) -> dict:
        """Fetch ccxt-style ticker dicts keyed by market symbol."""
        ...

    @abstractmethod
    async def create_order(
        self,
        symbol: str,
        order_type: str,
        side: str,
        amount: float,
        price: float | None = None,
        params: dict | None = None,
    ) -> dict:
        """Place an order on the exchange."""
        ...

    @abstractmethod
    def market_symbol(self, asset: str) -> str:
        """Map an asset code (e.g. "BTC") to the exchange market symbol."""
        ...
