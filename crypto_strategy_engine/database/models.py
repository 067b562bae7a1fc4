"""SQLAlchemy ORM models and typed records for persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class RiskProfileRow(Base):
    """Auto-trading limits of one user; absent rows mean the documented defaults."""

    __tablename__ = 'risk_profiles'

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    risk_tolerance: Mapped[str] = mapped_column(String(16), default='moderate')
    max_position_size_pct: Mapped[float] = mapped_column(Float)
    max_open_positions: Mapped[int] = mapped_column(Integer)
    daily_loss_limit_pct: Mapped[float] = mapped_column(Float)
    min_confidence: Mapped[float] = mapped_column(Float)
    allowed_symbols: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    use_limit_orders: Mapped[bool] = mapped_column(Boolean, default=True)
    slippage_tolerance_pct: Mapped[float] = mapped_column(Float)
    use_stop_loss: Mapped[bool] = mapped_column(Boolean, default=True)
    stop_loss_pct: Mapped[float] = mapped_column(Float)
    use_take_profit: Mapped[bool] = mapped_column(Boolean, default=True)
    take_profit_pct: Mapped[float] = mapped_column(Float)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class AutoTrade(Base):
    """An order submitted on a user's behalf."""

    __tablename__ = 'auto_trades'
    __table_args__ = (
        Index('ix_auto_trades_user_created', 'user_id', 'created_at'),
    )

    trade_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer)
    symbol: Mapped[str] = mapped_column(String(32), index=True)
    side: Mapped[str] = mapped_column(String(8))
    order_type: Mapped[str] = mapped_column(String(12))
    quantity: Mapped[float] = mapped_column(Float)
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String(24), index=True)
    executed_qty: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    executed_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class TradingStrategyRow(Base):
    """A generated strategy as presented to the user."""

    __tablename__ = 'trading_strategies'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    risk_level: Mapped[str] = mapped_column(String(16))
    target_roi: Mapped[float] = mapped_column(Float)
    expected_roi: Mapped[float] = mapped_column(Float)
    timeframe_days: Mapped[int] = mapped_column(Integer)
    leverage: Mapped[float] = mapped_column(Float)
    max_drawdown: Mapped[float] = mapped_column(Float)
    allocation: Mapped[list] = mapped_column(JSON)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class TradingLog(Base):
    """Audit trail of auto-trading decisions."""

    __tablename__ = 'trading_logs'
    __table_args__ = (
        Index('ix_trading_logs_user_created', 'user_id', 'created_at'),
        Index('ix_trading_logs_level_created', 'level', 'created_at'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer)
    level: Mapped[str] = mapped_column(String(12))
    message: Mapped[str] = mapped_column(Text)
    details: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    trade_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class WatchlistEntry(Base):
    __tablename__ = 'watchlists'
    __table_args__ = (
        UniqueConstraint('user_id', 'symbol', name='uq_watchlist_user_symbol'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    symbol: Mapped[str] = mapped_column(String(32))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


@dataclass(slots=True)
class TradeRecord:
    """Typed container for auto-trade persistence."""

    trade_id: str
    user_id: int
    symbol: str
    side: str
    order_type: str
    quantity: float
    price: float | None
    status: str
    created_at: datetime
    executed_qty: float | None = None
    executed_price: float | None = None
    error_message: str | None = None


@dataclass(slots=True)
class StrategyRecord:
    """Typed container for a stored strategy."""

    id: int
    user_id: int
    name: str
    risk_level: str
    target_roi: float
    expected_roi: float
    timeframe_days: int
    leverage: float
    max_drawdown: float
    allocation: list
    is_active: bool
    created_at: datetime
    description: str | None = None


@dataclass(slots=True)
class LogRecord:
    """Typed container for a trading log line."""

    user_id: int
    level: str
    message: str
    created_at: datetime
    details: dict[str, Any] = field(default_factory=dict)
    trade_id: str | None = None


__all__ = [
    'AutoTrade',
    'Base',
    'LogRecord',
    'RiskProfileRow',
    'StrategyRecord',
    'TradeRecord',
    'TradingLog',
    'TradingStrategyRow',
    'WatchlistEntry',
]
