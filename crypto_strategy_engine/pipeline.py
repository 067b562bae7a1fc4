"""One strategy-generation request: fresh signals, fresh portfolio, one timeout."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from .database import DatabaseManager
from .errors import NoViableAllocations
from .risk import PortfolioState, RiskProfile
from .signals import AggregatedSignal, SignalCollector
from .strategies import Goal, Strategy, StrategyGenerator

logger = logging.getLogger(__name__)

PortfolioProvider = Callable[[int], PortfolioState]


@dataclass
class PipelineResult:
    goal: Goal
    profile: RiskProfile
    universe: List[AggregatedSignal]
    strategies: List[Strategy]
    strategy_ids: List[int] = field(default_factory=list)


class StrategyPipeline:
    """Aggregate, then generate; partial results are never returned."""

    def __init__(
        self,
        collector: SignalCollector,
        database: DatabaseManager,
        generator: Optional[StrategyGenerator] = None,
        portfolio_provider: Optional[PortfolioProvider] = None,
        timeout: float = 30.0,
        persist: bool = True,
    ) -> None:
        self._collector = collector
        self._database = database
        self._generator = generator or StrategyGenerator()
        self._portfolio = portfolio_provider
        self._timeout = timeout
        self._persist = persist

    async def run(self, user_id: int, goal: Goal, symbols: Sequence[str]) -> PipelineResult:
        # Cancelling the inner task on timeout also cancels every in-flight source fetch.
        return await asyncio.wait_for(self._run(user_id, goal, symbols), timeout=self._timeout)

    async def _run(self, user_id: int, goal: Goal, symbols: Sequence[str]) -> PipelineResult:
        goal.validate()
        profile, universe = await asyncio.gather(
            asyncio.to_thread(self._database.get_risk_profile, user_id),
            self._collector.collect_universe(symbols),
        )
        context = self._portfolio(user_id) if self._portfolio else PortfolioState()
        try:
            strategies = self._generator.generate(goal, universe, profile, context)
        except NoViableAllocations as error:
            logger.warning('Strategy generation for user %s found no viable allocations: %s', user_id, error)
            await asyncio.to_thread(
                self._database.log_event,
                user_id,
                'WARNING',
                'Insufficient signal coverage for strategy generation',
                details={'tier': error.risk_level, 'reasons': list(error.reasons)},
            )
            raise
        result = PipelineResult(goal=goal, profile=profile, universe=universe, strategies=strategies)
        if self._persist:
            result.strategy_ids = await asyncio.to_thread(self._database.save_strategies, user_id, goal, strategies)
        return result


__all__ = ['PipelineResult', 'StrategyPipeline']
