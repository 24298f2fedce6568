"""Exchange client layer -- ccxt integration."""

from autotrader.exchange.ccxt_client import CcxtExchangeClient
from autotrader.exchange.client import ExchangeClient

__all__ = ["CcxtExchangeClient", "ExchangeClient"]
