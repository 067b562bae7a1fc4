"""Binance exchange specific settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Mapping

from .config import Settings

Network = Literal['mainnet', 'testnet']


@dataclass
class BinanceConfig:
    """Normalized representation of Binance API configuration.

    Market data endpoints are public, so empty credentials are valid; only
    order submission and key verification need them.
    """

    api_key: str = ''
    api_secret: str = ''
    network: Network = 'mainnet'
    recv_window: int = 5_000
    request_timeout: int = 10
    max_retries: int = 2
    retry_delay: float = 0.5

    def __post_init__(self) -> None:
        if self.network not in {'mainnet', 'testnet'}:
            raise ValueError(f'Unsupported network: {self.network}')
        if self.max_retries < 1:
            raise ValueError('max_retries must be at least 1')

    @property
    def base_url(self) -> str:
        return 'https://testnet.binance.vision' if self.network == 'testnet' else 'https://api.binance.com'

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_secret)

    @classmethod
    def from_env(
        cls,
        settings: Settings,
        environ: Mapping[str, str] | None = None,
    ) -> 'BinanceConfig':
        env = environ if environ is not None else os.environ
        network: Network = 'testnet' if settings.use_testnet else 'mainnet'
        return cls(
            api_key=env.get('BINANCE_API_KEY', ''),
            api_secret=env.get('BINANCE_API_SECRET', ''),
            network=network,
            recv_window=int(env.get('BINANCE_RECV_WINDOW', cls.recv_window)),
            request_timeout=int(env.get('BINANCE_API_TIMEOUT', cls.request_timeout)),
            max_retries=int(env.get('BINANCE_MAX_RETRIES', cls.max_retries)),
        )


__all__ = ['BinanceConfig', 'Network']
