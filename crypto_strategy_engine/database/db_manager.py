"""SQLAlchemy-backed persistence manager."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from sqlalchemy import Select, create_engine, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..risk import ALL_SYMBOLS, DEFAULT_RISK_PROFILE, RiskProfile
from ..strategies import Goal, Strategy
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

logger = logging.getLogger(__name__)

LOG_LEVELS = frozenset({'INFO', 'WARNING', 'ERROR'})


def _as_utc(value: datetime) -> datetime:
    """Ensure datetimes are timezone-aware in UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _profile_from_row(row: RiskProfileRow) -> RiskProfile:
    return RiskProfile(
        max_position_size_pct=row.max_position_size_pct,
        max_open_positions=row.max_open_positions,
        daily_loss_limit_pct=row.daily_loss_limit_pct,
        min_confidence=row.min_confidence,
        use_stop_loss=row.use_stop_loss,
        stop_loss_pct=row.stop_loss_pct,
        use_take_profit=row.use_take_profit,
        take_profit_pct=row.take_profit_pct,
        allowed_symbols=row.allowed_symbols if row.allowed_symbols is not None else ALL_SYMBOLS,
        risk_tolerance=row.risk_tolerance,
        use_limit_orders=row.use_limit_orders,
        slippage_tolerance_pct=row.slippage_tolerance_pct,
    )


def _apply_profile(row: RiskProfileRow, profile: RiskProfile) -> None:
    row.max_position_size_pct = profile.max_position_size_pct
    row.max_open_positions = profile.max_open_positions
    row.daily_loss_limit_pct = profile.daily_loss_limit_pct
    row.min_confidence = profile.min_confidence
    row.use_stop_loss = profile.use_stop_loss
    row.stop_loss_pct = profile.stop_loss_pct
    row.use_take_profit = profile.use_take_profit
    row.take_profit_pct = profile.take_profit_pct
    row.allowed_symbols = None if profile.allowed_symbols == ALL_SYMBOLS else sorted(profile.allowed_symbols)
    row.risk_tolerance = profile.risk_tolerance.value
    row.use_limit_orders = profile.use_limit_orders
    row.slippage_tolerance_pct = profile.slippage_tolerance_pct
    row.updated_at = _now()


def _allocation_payload(strategy: Strategy) -> List[Dict[str, Any]]:
    return [
        {
            'symbol': allocation.symbol,
            'allocation_pct': allocation.allocation_pct,
            'entry_price': allocation.entry_price,
            'target_price': allocation.target_price,
            'side': allocation.side,
            'stop_loss_price': allocation.stop_loss_price,
            'take_profit_price': allocation.take_profit_price,
        }
        for allocation in strategy.allocations
    ]


class DatabaseManager:
    """High level helper around a SQLAlchemy engine and session factory.

    Doubles as the risk profile store: ``get_risk_profile`` falls back to the
    documented defaults for users who never saved one.
    """

    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        self._database_url = database_url
        connect_args: dict[str, object] = {}
        if database_url.startswith('sqlite:///'):
            db_path = Path(database_url.replace('sqlite:///', '', 1))
            db_path.parent.mkdir(parents=True, exist_ok=True)
            connect_args['check_same_thread'] = False
        self._engine: Engine = create_engine(
            database_url,
            echo=echo,
            connect_args=connect_args,
        )
        self._session_factory = sessionmaker(
            self._engine,
            expire_on_commit=False,
        )
        self.create_schema()

    def create_schema(self) -> None:
        """Create database tables if they do not already exist."""

        Base.metadata.create_all(self._engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager returning a database session with automatic commit."""

        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:  # pragma: no cover - re-raise after rollback
            session.rollback()
            raise
        finally:
            session.close()

    # Risk profiles

    def get_risk_profile(self, user_id: int) -> RiskProfile:
        with self.session() as session:
            row = session.get(RiskProfileRow, user_id)
            if row is None:
                return DEFAULT_RISK_PROFILE
            return _profile_from_row(row)

    def update_risk_profile(self, user_id: int, **changes: Any) -> RiskProfile:
        """Apply a partial update and return the stored profile.

        Raises ``ValueError`` for unknown fields or out-of-range values; nothing
        is written in that case.
        """
        with self.session() as session:
            row = session.get(RiskProfileRow, user_id)
            current = DEFAULT_RISK_PROFILE if row is None else _profile_from_row(row)
            updated = current.with_updates(**changes)
            if row is None:
                row = RiskProfileRow(user_id=user_id)
                session.add(row)
            _apply_profile(row, updated)
        logger.info('Updated risk profile for user %s: %s', user_id, sorted(changes))
        return updated

    def set_auto_trading_enabled(self, user_id: int, enabled: bool) -> None:
        with self.session() as session:
            row = session.get(RiskProfileRow, user_id)
            if row is None:
                row = RiskProfileRow(user_id=user_id)
                _apply_profile(row, DEFAULT_RISK_PROFILE)
                session.add(row)
            row.enabled = enabled

    def is_auto_trading_enabled(self, user_id: int) -> bool:
        with self.session() as session:
            row = session.get(RiskProfileRow, user_id)
            return bool(row and row.enabled)

    # Trades

    def record_auto_trade(self, trade: TradeRecord) -> None:
        """Persist details about a submitted order."""

        with self.session() as session:
            session.merge(
                AutoTrade(
                    trade_id=trade.trade_id,
                    user_id=trade.user_id,
                    symbol=trade.symbol,
                    side=trade.side,
                    order_type=trade.order_type,
                    quantity=trade.quantity,
                    price=trade.price,
                    status=trade.status,
                    executed_qty=trade.executed_qty,
                    executed_price=trade.executed_price,
                    error_message=trade.error_message,
                    created_at=_as_utc(trade.created_at),
                )
            )

    def update_trade_status(self, trade_id: str, status: str, *, error_message: str | None = None) -> None:
        with self.session() as session:
            row = session.get(AutoTrade, trade_id)
            if row is None:
                raise KeyError(trade_id)
            row.status = status
            if error_message is not None:
                row.error_message = error_message

    def list_trades(self, user_id: int, limit: int = 50) -> List[TradeRecord]:
        """Most recent trades first."""
        stmt: Select[tuple[AutoTrade]] = (
            select(AutoTrade)
            .where(AutoTrade.user_id == user_id)
            .order_by(AutoTrade.created_at.desc())
            .limit(limit)
        )
        with self.session() as session:
            rows = session.execute(stmt).scalars().all()
        return [
            TradeRecord(
                trade_id=row.trade_id,
                user_id=row.user_id,
                symbol=row.symbol,
                side=row.side,
                order_type=row.order_type,
                quantity=row.quantity,
                price=row.price,
                status=row.status,
                created_at=_as_utc(row.created_at),
                executed_qty=row.executed_qty,
                executed_price=row.executed_price,
                error_message=row.error_message,
            )
            for row in rows
        ]

    # Strategies

    def save_strategies(self, user_id: int, goal: Goal, strategies: Iterable[Strategy]) -> List[int]:
        created_at = _now()
        rows = [
            TradingStrategyRow(
                user_id=user_id,
                name=strategy.name,
                description=strategy.description,
                risk_level=strategy.risk_level.value,
                target_roi=goal.target_roi,
                expected_roi=strategy.expected_roi,
                timeframe_days=goal.timeframe_days,
                leverage=strategy.leverage,
                max_drawdown=strategy.max_drawdown,
                allocation=_allocation_payload(strategy),
                created_at=created_at,
            )
            for strategy in strategies
        ]
        with self.session() as session:
            session.add_all(rows)
            session.flush()
            return [row.id for row in rows]

    def activate_strategy(self, user_id: int, strategy_id: int) -> None:
        """Mark one stored strategy active and deactivate the user's others."""
        with self.session() as session:
            target = session.get(TradingStrategyRow, strategy_id)
            if target is None or target.user_id != user_id:
                raise KeyError(strategy_id)
            stmt = select(TradingStrategyRow).where(TradingStrategyRow.user_id == user_id)
            for row in session.execute(stmt).scalars():
                row.is_active = row.id == strategy_id

    def list_strategies(self, user_id: int, limit: int = 20) -> List[StrategyRecord]:
        stmt: Select[tuple[TradingStrategyRow]] = (
            select(TradingStrategyRow)
            .where(TradingStrategyRow.user_id == user_id)
            .order_by(TradingStrategyRow.created_at.desc(), TradingStrategyRow.id.asc())
            .limit(limit)
        )
        with self.session() as session:
            rows = session.execute(stmt).scalars().all()
        return [
            StrategyRecord(
                id=row.id,
                user_id=row.user_id,
                name=row.name,
                risk_level=row.risk_level,
                target_roi=row.target_roi,
                expected_roi=row.expected_roi,
                timeframe_days=row.timeframe_days,
                leverage=row.leverage,
                max_drawdown=row.max_drawdown,
                allocation=list(row.allocation),
                is_active=row.is_active,
                created_at=_as_utc(row.created_at),
                description=row.description,
            )
            for row in rows
        ]

    # Logs

    def log_event(
        self,
        user_id: int,
        level: str,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        trade_id: str | None = None,
    ) -> None:
        level = level.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f'Unsupported log level: {level}')
        with self.session() as session:
            session.add(
                TradingLog(
                    user_id=user_id,
                    level=level,
                    message=message,
                    details=details,
                    trade_id=trade_id,
                    created_at=_now(),
                )
            )

    def list_logs(self, user_id: int, limit: int = 100) -> List[LogRecord]:
        stmt: Select[tuple[TradingLog]] = (
            select(TradingLog)
            .where(TradingLog.user_id == user_id)
            .order_by(TradingLog.created_at.desc(), TradingLog.id.desc())
            .limit(limit)
        )
        with self.session() as session:
            rows = session.execute(stmt).scalars().all()
        return [
            LogRecord(
                user_id=row.user_id,
                level=row.level,
                message=row.message,
                created_at=_as_utc(row.created_at),
                details=dict(row.details or {}),
                trade_id=row.trade_id,
            )
            for row in rows
        ]

    # Watchlist

    def add_to_watchlist(self, user_id: int, symbol: str) -> None:
        symbol = symbol.upper()
        with self.session() as session:
            stmt = select(WatchlistEntry).where(
                WatchlistEntry.user_id == user_id, WatchlistEntry.symbol == symbol
            )
            if session.execute(stmt).scalar_one_or_none() is None:
                session.add(WatchlistEntry(user_id=user_id, symbol=symbol, created_at=_now()))

    def remove_from_watchlist(self, user_id: int, symbol: str) -> None:
        with self.session() as session:
            session.execute(
                delete(WatchlistEntry).where(
                    WatchlistEntry.user_id == user_id, WatchlistEntry.symbol == symbol.upper()
                )
            )

    def watchlist(self, user_id: int) -> List[str]:
        stmt = (
            select(WatchlistEntry.symbol)
            .where(WatchlistEntry.user_id == user_id)
            .order_by(WatchlistEntry.created_at, WatchlistEntry.id)
        )
        with self.session() as session:
            return list(session.execute(stmt).scalars().all())

    def close(self) -> None:
        """Dispose of the underlying engine and connection pool."""

        self._engine.dispose()


__all__ = ['DatabaseManager']
