"""Generic exchange client implementation via ccxt async.

Wraps any ccxt.async_support exchange class selected by id, with market
loading and async cleanup. Credentials are handed to ccxt as configured;
request signing is ccxt's concern.
"""

import ccxt.async_support as ccxt_async

from autotrader.config import ExchangeSettings
from autotrader.exchange.client import ExchangeClient
from autotrader.logging import get_logger

logger = get_logger(__name__)


class CcxtExchangeClient(ExchangeClient):
    """Concrete exchange client using ccxt async.

    Args:
        settings: Exchange id, quote currency and optional API keys.
    """

    def __init__(self, settings: ExchangeSettings) -> None:
        self._settings = settings

        exchange_class = getattr(ccxt_async, settings.exchange_id, None)
        if exchange_class is None:
            raise ValueError(f"Unknown ccxt exchange id: {settings.exchange_id}")

        config: dict = {"enableRateLimit": True}
        api_key = settings.api_key.get_secret_value()
        if api_key:
            config["apiKey"] = api_key
            config["secret"] = settings.api_secret.get_secret_value()

        self._exchange = exchange_class(config)
        self._markets: dict = {}

    @property
    def exchange(self):
        """Access the underlying ccxt exchange instance."""
        return self._exchange

    async def connect(self) -> None:
        """Initialize connection by loading markets."""
        logger.info("connecting_to_exchange", exchange=self._settings.exchange_id)
        self._markets = await self._exchange.load_markets()
        logger.info(
            "exchange_connected",
            exchange=self._settings.exchange_id,
            market_count=len(self._markets),
        )

    async def close(self) -> None:
        """Clean up ccxt async resources. CRITICAL: must be called to avoid resource leaks."""
        logger.info("closing_exchange_connection", exchange=self._settings.exchange_id)
        await self._exchange.close()

    async def fetch_tickers(self, symbols: list[str] | None = None) -> dict:
        """Fetch ticker data for multiple market symbols."""
        return await self._exchange.fetch_tickers(symbols)

    async def create_order(
        self,
        symbol: str,
        order_type: str,
        side: str,
        amount: float,
        price: float | None = None,
        params: dict | None = None,
    ) -> dict:
        """Place an order via ccxt."""
        logger.info(
            "creating_order",
            symbol=symbol,
            order_type=order_type,
            side=side,
            amount=amount,
        )
        return await self._exchange.create_order(
            symbol, order_type, side, amount, price, params=params or {}
        )

    def market_symbol(self, asset: str) -> str:
        """Return ``ASSET/QUOTE`` (e.g. "BTC/USDT")."""
        return f"{asset}/{self._settings.quote_currency}"
