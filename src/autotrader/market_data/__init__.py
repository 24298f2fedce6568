"""Market data layer -- providers and the background poller."""

from autotrader.market_data.poller import MarketDataPoller, SymbolSnapshot
from autotrader.market_data.provider import CcxtMarketDataProvider, MarketDataProvider

__all__ = [
    "CcxtMarketDataProvider",
    "MarketDataPoller",
    "MarketDataProvider",
    "SymbolSnapshot",
]
