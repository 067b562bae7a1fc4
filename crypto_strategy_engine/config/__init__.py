"""Configuration utilities for the strategy engine."""

from .binance_config import BinanceConfig
from .config import Settings, load_settings

__all__ = ['Settings', 'BinanceConfig', 'load_settings']
