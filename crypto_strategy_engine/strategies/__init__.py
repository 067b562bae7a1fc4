"""Goal-based strategy generation."""

from .generator import TIER_POLICIES, StrategyGenerator, rank_signals, recommended
from .models import CandidateAllocation, Goal, RiskLevel, Side, Strategy, TierPolicy

__all__ = [
    'CandidateAllocation',
    'Goal',
    'RiskLevel',
    'Side',
    'Strategy',
    'StrategyGenerator',
    'TIER_POLICIES',
    'TierPolicy',
    'rank_signals',
    'recommended',
]
