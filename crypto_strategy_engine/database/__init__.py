"""Persistence layer exports."""

from .db_manager import DatabaseManager
from .models import (
    AutoTrade,
    Base,
    LogRecord,
    RiskProfileRow,
    StrategyRecord,
    TradeRecord,
    TradingLog,
    TradingStrategyRow,
    WatchlistEntry,
)

__all__ = [
    'AutoTrade',
    'Base',
    'DatabaseManager',
    'LogRecord',
    'RiskProfileRow',
    'StrategyRecord',
    'TradeRecord',
    'TradingLog',
    'TradingStrategyRow',
    'WatchlistEntry',
]
