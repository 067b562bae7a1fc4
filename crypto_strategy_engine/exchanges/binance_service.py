"""Shared Binance client management."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import AsyncIterator, Optional

from binance import AsyncClient
from binance.exceptions import BinanceAPIException, BinanceRequestException

from ..config import BinanceConfig

logger = logging.getLogger(__name__)


class BinanceService:
    """Lazily instantiates one Binance AsyncClient shared by all callers."""

    def __init__(self, config: BinanceConfig | None = None) -> None:
        self._config = config or BinanceConfig()
        self._client: Optional[AsyncClient] = None
        self._lock = asyncio.Lock()

    @property
    def config(self) -> BinanceConfig:
        return self._config

    async def client(self) -> AsyncClient:
        async with self._lock:
            if self._client is None:
                logger.debug('Opening Binance client for %s', self._config.base_url)
                self._client = await self._create(self._config.api_key, self._config.api_secret)
            return self._client

    @contextlib.asynccontextmanager
    async def scoped_client(self, api_key: str, api_secret: str) -> AsyncIterator[AsyncClient]:
        """Yield a short-lived client bound to someone else's credentials."""
        client = await self._create(api_key, api_secret)
        try:
            yield client
        finally:
            await client.close_connection()

    async def _create(self, api_key: str, api_secret: str) -> AsyncClient:
        return await AsyncClient.create(
            api_key=api_key or None,
            api_secret=api_secret or None,
            testnet=self._config.network == 'testnet',
            requests_params={'timeout': self._config.request_timeout},
        )

    async def close(self) -> None:
        async with self._lock:
            if self._client is not None:
                await self._client.close_connection()
                self._client = None


__all__ = ['BinanceService', 'BinanceAPIException', 'BinanceRequestException']
