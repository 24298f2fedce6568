"""Market data providers.

A provider returns one MarketTick per requested symbol or raises
FeedUnavailable; it never returns partial or garbage data.
"""

import time
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation

from autotrader.exceptions import FeedUnavailable
from autotrader.exchange.client import ExchangeClient
from autotrader.logging import get_logger
from autotrader.models import MarketTick

logger = get_logger(__name__)


class MarketDataProvider(ABC):
    """Source of the latest tick per symbol."""

    @abstractmethod
    async def fetch_latest(self, symbols: list[str]) -> list[MarketTick]:
        """Return the latest tick for every symbol.

        Raises:
            FeedUnavailable: On any provider failure or missing symbol.
        """
        ...


def _to_decimal(value: object, default: Decimal = Decimal("0")) -> Decimal:
    if value is None:
        return default
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    # NaN and Infinity would poison every comparison downstream
    return result if result.is_finite() else default


class CcxtMarketDataProvider(MarketDataProvider):
    """Builds MarketTicks from ccxt ``fetch_tickers`` results.

    Args:
        client: Connected exchange client.
    """

    def __init__(self, client: ExchangeClient) -> None:
        self._client = client

    async def fetch_latest(self, symbols: list[str]) -> list[MarketTick]:
        market_symbols = {self._client.market_symbol(s): s for s in symbols}

        try:
            tickers = await self._client.fetch_tickers(list(market_symbols))
        except Exception as exc:
            raise FeedUnavailable(f"fetch_tickers failed: {exc}") from exc

        ticks: list[MarketTick] = []
        for market_symbol, symbol in market_symbols.items():
            ticker = tickers.get(market_symbol)
            if ticker is None:
                raise FeedUnavailable(f"No ticker returned for {market_symbol}")

            price = _to_decimal(ticker.get("last"))
            if price <= 0:
                raise FeedUnavailable(f"Invalid last price for {market_symbol}: {ticker.get('last')}")

            volume = _to_decimal(ticker.get("quoteVolume") or ticker.get("baseVolume"))
            raw_ts = ticker.get("timestamp")
            timestamp = float(raw_ts) / 1000.0 if raw_ts else time.time()

            ticks.append(
                MarketTick(
                    symbol=symbol,
                    price=price,
                    change_24h_pct=_to_decimal(ticker.get("percentage")),
                    volume=volume,
                    timestamp=timestamp,
                )
            )

        logger.debug("market_data_fetched", count=len(ticks))
        return ticks
