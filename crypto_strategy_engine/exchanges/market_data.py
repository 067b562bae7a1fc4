"""Read-only market data access backed by the public Binance REST API.

Every public method degrades to a sentinel value (``'0'``, ``None`` or an
empty collection) instead of raising, so callers can keep rendering a
dashboard or skip a symbol when the exchange misbehaves.
"""

from __future__ import annotations

import abc
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import aiohttp

from ..utils import async_retry
from .binance_service import BinanceAPIException, BinanceRequestException, BinanceService

logger = logging.getLogger(__name__)

KLINE_INTERVALS = frozenset({'1m', '5m', '15m', '1h', '4h', '1d', '1w'})

_TRANSIENT_ERRORS = (
    BinanceAPIException,
    BinanceRequestException,
    aiohttp.ClientError,
    asyncio.TimeoutError,
)


@dataclass(frozen=True)
class Kline:
    """One OHLCV candle. Prices stay decimal strings, as the exchange sends them."""

    open_time: int
    open: str
    high: str
    low: str
    close: str
    volume: str
    close_time: int
    quote_volume: str = '0'
    trades: int = 0

    @classmethod
    def from_raw(cls, row: List[Any]) -> 'Kline':
        return cls(
            open_time=int(row[0]),
            open=str(row[1]),
            high=str(row[2]),
            low=str(row[3]),
            close=str(row[4]),
            volume=str(row[5]),
            close_time=int(row[6]),
            quote_volume=str(row[7]) if len(row) > 7 else '0',
            trades=int(row[8]) if len(row) > 8 else 0,
        )


@dataclass(frozen=True)
class ApiKeyCheck:
    valid: bool
    can_read: bool = False
    can_trade: bool = False
    can_withdraw: bool = False
    error: Optional[str] = None


class MarketDataSource(abc.ABC):
    """Contract consumed by the signal layer."""

    @abc.abstractmethod
    async def get_current_price(self, symbol: str) -> str:
        """Return the last price as a decimal string, ``'0'`` when unavailable."""

    @abc.abstractmethod
    async def get_klines(
        self,
        symbol: str,
        interval: str,
        limit: int = 100,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
    ) -> List[Kline]:
        """Return candles ordered oldest to newest, empty when unavailable."""


class BinanceMarketData(MarketDataSource):
    def __init__(self, service: BinanceService) -> None:
        self._service = service
        config = service.config
        self._retry = async_retry(
            retries=config.max_retries,
            delay=config.retry_delay,
            exceptions=_TRANSIENT_ERRORS,
        )

    async def _call(self, method: str, **params: Any) -> Any:
        async def _request() -> Any:
            client = await self._service.client()
            return await getattr(client, method)(**params)

        return await self._retry(_request)()

    async def get_current_price(self, symbol: str) -> str:
        try:
            data = await self._call('get_symbol_ticker', symbol=symbol.upper())
        except _TRANSIENT_ERRORS as error:
            logger.error('Error fetching price for %s: %s', symbol, error)
            return '0'
        return str(data.get('price') or '0')

    async def get_24h_ticker(self, symbol: str) -> Optional[Dict[str, Any]]:
        try:
            return await self._call('get_ticker', symbol=symbol.upper())
        except _TRANSIENT_ERRORS as error:
            logger.error('Error fetching 24h ticker for %s: %s', symbol, error)
            return None

    async def get_klines(
        self,
        symbol: str,
        interval: str,
        limit: int = 100,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
    ) -> List[Kline]:
        if interval not in KLINE_INTERVALS:
            raise ValueError(f'Unsupported interval: {interval}')
        params: Dict[str, Any] = {'symbol': symbol.upper(), 'interval': interval, 'limit': limit}
        if start_time:
            params['startTime'] = start_time
        if end_time:
            params['endTime'] = end_time
        try:
            rows = await self._call('get_klines', **params)
        except _TRANSIENT_ERRORS as error:
            logger.error('Error fetching klines for %s %s: %s', symbol, interval, error)
            return []
        return [Kline.from_raw(row) for row in rows]

    async def get_multiple_prices(self, symbols: Iterable[str]) -> Dict[str, str]:
        wanted = {symbol.upper() for symbol in symbols}
        try:
            data = await self._call('get_symbol_ticker')
        except _TRANSIENT_ERRORS as error:
            logger.error('Error fetching multiple prices: %s', error)
            return {}
        return {item['symbol']: item['price'] for item in data if item['symbol'] in wanted}

    async def get_multiple_tickers(self, symbols: Iterable[str]) -> List[Dict[str, Any]]:
        wanted = {symbol.upper() for symbol in symbols}
        try:
            data = await self._call('get_ticker')
        except _TRANSIENT_ERRORS as error:
            logger.error('Error fetching multiple tickers: %s', error)
            return []
        return [ticker for ticker in data if ticker['symbol'] in wanted]

    async def get_trading_symbols(self) -> List[Dict[str, Any]]:
        try:
            info = await self._call('get_exchange_info')
        except _TRANSIENT_ERRORS as error:
            logger.error('Error fetching trading symbols: %s', error)
            return []
        return [entry for entry in info.get('symbols', []) if entry.get('status') == 'TRADING']

    async def verify_api_key(self, api_key: str, api_secret: str) -> ApiKeyCheck:
        """Check a user's credentials against the signed account endpoint."""
        if not api_key or not api_secret:
            return ApiKeyCheck(valid=False, error='API key and secret are required')
        try:
            async with self._service.scoped_client(api_key, api_secret) as client:
                account = await client.get_account()
        except BinanceAPIException as error:
            logger.info('API key rejected by exchange: %s', error)
            return ApiKeyCheck(valid=False, error='Invalid API key')
        except (BinanceRequestException, aiohttp.ClientError, asyncio.TimeoutError) as error:
            return ApiKeyCheck(valid=False, error=str(error) or 'API key validation failed')
        return ApiKeyCheck(
            valid=True,
            can_read=True,
            can_trade=bool(account.get('canTrade', False)),
            can_withdraw=bool(account.get('canWithdraw', False)),
        )


__all__ = ['ApiKeyCheck', 'BinanceMarketData', 'KLINE_INTERVALS', 'Kline', 'MarketDataSource']
