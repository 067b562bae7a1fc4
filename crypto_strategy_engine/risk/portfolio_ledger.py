"""In-memory order ledger producing the PortfolioState seen by the risk gate."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional

from .profile import PortfolioState

# Binance reports NEW for an accepted order that has not filled yet.
OPEN_STATUSES = frozenset({'NEW', 'PENDING', 'PARTIALLY_FILLED', 'FILLED'})
TERMINAL_STATUSES = frozenset({'CANCELED', 'CANCELLED', 'EXPIRED', 'FAILED', 'REJECTED', 'CLOSED'})


def _normalize_status(status: str) -> str:
    status = status.upper()
    if status not in OPEN_STATUSES | TERMINAL_STATUSES:
        raise ValueError(f'Unknown order status: {status}')
    return status


def _today() -> date:
    return datetime.now(tz=timezone.utc).date()


@dataclass
class LedgerEntry:
    order_id: str
    symbol: str
    side: str
    quantity: float
    price: float
    status: str = 'PENDING'
    realized_pnl: float = 0.0

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES


class PortfolioLedger:
    """Tracks one user's orders and the realized result of the current day.

    Open positions are orders in a non-terminal status, pending ones
    included, so an order in flight already counts against the limit.
    """

    def __init__(self, starting_equity: float, clock: Callable[[], date] = _today) -> None:
        if starting_equity <= 0:
            raise ValueError('starting_equity must be positive')
        self._clock = clock
        self._starting_equity = starting_equity
        self._day = clock()
        self._realized_today = 0.0
        self._entries: Dict[str, LedgerEntry] = {}

    @property
    def starting_equity(self) -> float:
        return self._starting_equity

    def record_order(
        self,
        order_id: str,
        symbol: str,
        side: str,
        quantity: float,
        price: float,
        status: str = 'PENDING',
    ) -> LedgerEntry:
        if order_id in self._entries:
            raise ValueError(f'Order {order_id} already recorded')
        entry = LedgerEntry(order_id, symbol.upper(), side.upper(), quantity, price, _normalize_status(status))
        self._entries[order_id] = entry
        return entry

    def update_status(self, order_id: str, status: str) -> LedgerEntry:
        status = _normalize_status(status)
        entry = self._entries[order_id]
        entry.status = status
        return entry

    def close_position(self, order_id: str, exit_price: float) -> LedgerEntry:
        """Close a filled order and book its profit or loss against today."""
        entry = self._entries[order_id]
        if not entry.is_open:
            raise ValueError(f'Order {order_id} is not open')
        direction = 1 if entry.side == 'BUY' else -1
        entry.realized_pnl = (exit_price - entry.price) * entry.quantity * direction
        entry.status = 'CLOSED'
        self._roll_day()
        self._realized_today += entry.realized_pnl
        return entry

    def reset_day(self, starting_equity: Optional[float] = None) -> None:
        if starting_equity is not None:
            if starting_equity <= 0:
                raise ValueError('starting_equity must be positive')
            self._starting_equity = starting_equity
        self._day = self._clock()
        self._realized_today = 0.0

    def open_entries(self) -> List[LedgerEntry]:
        return [entry for entry in self._entries.values() if entry.is_open]

    def snapshot(self) -> PortfolioState:
        self._roll_day()
        loss = max(-self._realized_today, 0.0)
        return PortfolioState(
            open_positions_count=len(self.open_entries()),
            realized_loss_pct_today=loss / self._starting_equity * 100,
        )

    def _roll_day(self) -> None:
        if self._clock() != self._day:
            self.reset_day()


__all__ = ['LedgerEntry', 'OPEN_STATUSES', 'PortfolioLedger', 'TERMINAL_STATUSES']
