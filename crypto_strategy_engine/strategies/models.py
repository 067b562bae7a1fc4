"""Goal, allocation and strategy records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple

from ..errors import InvalidGoal
from ..risk import RiskTolerance
from ..signals import AggregatedSignal

Side = Literal['BUY', 'SELL']
RiskLevel = RiskTolerance


@dataclass(frozen=True)
class Goal:
    target_roi: float
    capital: float
    timeframe_days: int
    risk_tolerance: RiskTolerance = RiskTolerance.MODERATE

    def __post_init__(self) -> None:
        object.__setattr__(self, 'risk_tolerance', RiskTolerance(self.risk_tolerance))

    def validate(self) -> None:
        problems = []
        if self.target_roi <= 0:
            problems.append('target ROI must be positive')
        if self.capital <= 0:
            problems.append('capital must be positive')
        if self.timeframe_days <= 0:
            problems.append('timeframe must be at least one day')
        if problems:
            raise InvalidGoal('; '.join(problems))


@dataclass(frozen=True)
class CandidateAllocation:
    symbol: str
    allocation_pct: float
    entry_price: float
    target_price: float
    # Borrowed from the universe it was built from; identity only.
    source_signal: AggregatedSignal = field(compare=False, hash=False, repr=False)
    side: Side = 'BUY'
    stop_loss_price: Optional[float] = None
    take_profit_price: Optional[float] = None

    def capital_for(self, capital: float) -> float:
        return capital * self.allocation_pct / 100


@dataclass(frozen=True)
class TierPolicy:
    """Fixed per-tier policy; leverage and drawdown never depend on signals."""

    risk_level: RiskLevel
    name: str
    description: str
    leverage: float
    max_drawdown: float
    roi_multiplier: float
    min_confidence: float
    max_symbols: int


@dataclass(frozen=True)
class Strategy:
    name: str
    risk_level: RiskLevel
    expected_roi: float
    max_drawdown: float
    leverage: float
    allocations: Tuple[CandidateAllocation, ...]
    description: str = ''
    # expected_roi is a presentation estimate, never a backtested figure.
    illustrative: bool = True

    def __post_init__(self) -> None:
        if self.leverage < 1:
            raise ValueError('leverage must be at least 1')

    @property
    def total_allocation_pct(self) -> float:
        return sum(allocation.allocation_pct for allocation in self.allocations)

    @property
    def symbols(self) -> Tuple[str, ...]:
        return tuple(allocation.symbol for allocation in self.allocations)


__all__ = ['CandidateAllocation', 'Goal', 'RiskLevel', 'Side', 'Strategy', 'TierPolicy']
