"""Turns an approved strategy into exchange orders, one user at a time."""

from __future__ import annotations

import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from ..database import DatabaseManager, TradeRecord
from ..errors import OrderRejected
from ..risk import PortfolioLedger, RiskGate, RiskGateResult, RiskProfile
from ..strategies import CandidateAllocation, Strategy
from .order_manager import OrderManager, OrderRequest, OrderResult

logger = logging.getLogger(__name__)

LedgerProvider = Callable[[int], PortfolioLedger]


@dataclass
class ActivationReport:
    strategy: str
    submitted: List[OrderResult] = field(default_factory=list)
    blocked: List[Tuple[str, RiskGateResult]] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def fully_applied(self) -> bool:
        return not self.blocked and not self.failed


def build_order(allocation: CandidateAllocation, capital: float, profile: RiskProfile) -> OrderRequest:
    """Size an allocation into a spot order; tier leverage is not applied on spot."""
    if allocation.entry_price <= 0:
        raise ValueError(f'No entry price for {allocation.symbol}')
    quantity = allocation.capital_for(capital) / allocation.entry_price
    if not profile.use_limit_orders:
        return OrderRequest(allocation.symbol, allocation.side, quantity, allocation.entry_price, 'MARKET')
    slippage = profile.slippage_tolerance_pct / 100
    factor = 1 + slippage if allocation.side == 'BUY' else 1 - slippage
    return OrderRequest(allocation.symbol, allocation.side, quantity, allocation.entry_price * factor, 'LIMIT')


class StrategyExecutor:
    """Serializes check-then-commit per user.

    The risk gate is re-run against a fresh ledger snapshot before every
    order, inside the user's lock, so two concurrent activations can never
    both pass the open-position limit against a stale count. A user's lock
    lives only while an activation for that user holds it.
    """

    def __init__(
        self,
        order_manager: OrderManager,
        ledger_provider: LedgerProvider,
        risk_gate: Optional[RiskGate] = None,
        database: Optional[DatabaseManager] = None,
    ) -> None:
        self._orders = order_manager
        self._ledgers = ledger_provider
        self._gate = risk_gate or RiskGate()
        self._database = database
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    async def activate(
        self,
        user_id: int,
        strategy: Strategy,
        capital: float,
        profile: RiskProfile,
    ) -> ActivationReport:
        if capital <= 0:
            raise ValueError('capital must be positive')
        report = ActivationReport(strategy=strategy.name)
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        async with lock:
            ledger = self._ledgers(user_id)
            for allocation in strategy.allocations:
                state = ledger.snapshot()
                verdict = self._gate.evaluate(allocation, profile, state)
                if not verdict.allowed:
                    logger.info('Blocked %s for user %s: %s', allocation.symbol, user_id, verdict.guidance())
                    report.blocked.append((allocation.symbol, verdict))
                    continue
                try:
                    request = build_order(allocation, capital, profile)
                    result = await self._orders.submit(request)
                except (ValueError, OrderRejected) as error:
                    report.failed.append((allocation.symbol, str(error)))
                    continue
                ledger.record_order(
                    result.order_id,
                    request.symbol,
                    request.side,
                    result.filled_quantity or request.quantity,
                    result.filled_price or request.price or allocation.entry_price,
                    status=result.status,
                )
                await self._persist(user_id, request, result)
                report.submitted.append(result)
        logger.info(
            'Activated %s for user %s: %d submitted, %d blocked, %d failed',
            strategy.name,
            user_id,
            len(report.submitted),
            len(report.blocked),
            len(report.failed),
        )
        return report

    async def _persist(self, user_id: int, request: OrderRequest, result: OrderResult) -> None:
        if self._database is None:
            return
        record = TradeRecord(
            trade_id=result.order_id,
            user_id=user_id,
            symbol=request.symbol,
            side=request.side,
            order_type=request.order_type,
            quantity=request.quantity,
            price=request.price,
            status=result.status,
            executed_qty=result.filled_quantity,
            executed_price=result.filled_price,
            created_at=datetime.now(tz=timezone.utc),
        )
        await asyncio.to_thread(self._database.record_auto_trade, record)


__all__ = ['ActivationReport', 'StrategyExecutor', 'build_order']
