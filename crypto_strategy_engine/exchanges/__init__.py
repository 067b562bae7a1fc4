"""Exchange integrations exposed to the rest of the system."""

from .binance_service import (
    BinanceAPIException,
    BinanceRequestException,
    BinanceService,
)
from .market_data import ApiKeyCheck, BinanceMarketData, Kline, MarketDataSource

__all__ = [
    'ApiKeyCheck',
    'BinanceAPIException',
    'BinanceMarketData',
    'BinanceRequestException',
    'BinanceService',
    'Kline',
    'MarketDataSource',
]
