"""Goal-based generation of risk-tiered strategies.

Every call returns one strategy per tier, conservative first, whatever tier
the user asked for, so the three can be compared side by side. Each
allocation passes through the risk gate; rejected allocations are dropped
and their share is spread over the survivors in proportion to their weight.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from ..errors import NoViableAllocations
from ..risk import PortfolioState, RiskGate, RiskProfile, RiskTolerance
from ..signals import AggregatedSignal, Direction
from .models import CandidateAllocation, Goal, Strategy, TierPolicy

logger = logging.getLogger(__name__)

TIER_POLICIES: Sequence[TierPolicy] = (
    TierPolicy(
        risk_level=RiskTolerance.CONSERVATIVE,
        name='Conservative Growth',
        description='Low-risk allocation across the strongest, highest-confidence signals with no leverage.',
        leverage=1,
        max_drawdown=10.0,
        roi_multiplier=0.6,
        min_confidence=0.70,
        max_symbols=3,
    ),
    TierPolicy(
        risk_level=RiskTolerance.MODERATE,
        name='Balanced Approach',
        description='Moderate risk with 2x leverage, balanced across well-supported bullish signals.',
        leverage=2,
        max_drawdown=20.0,
        roi_multiplier=1.0,
        min_confidence=0.55,
        max_symbols=4,
    ),
    TierPolicy(
        risk_level=RiskTolerance.AGGRESSIVE,
        name='Aggressive Growth',
        description='High-risk, high-reward allocation with 5x leverage, diversified across more bullish signals.',
        leverage=5,
        max_drawdown=35.0,
        roi_multiplier=1.5,
        min_confidence=0.40,
        max_symbols=5,
    ),
)


def rank_signals(universe: Iterable[AggregatedSignal]) -> List[AggregatedSignal]:
    """Bullish signals by score times confidence, best first; ties by symbol."""
    best: Dict[str, AggregatedSignal] = {}
    for signal in universe:
        if signal.direction is not Direction.BULLISH:
            continue
        current = best.get(signal.symbol)
        if current is None or signal.rank_weight > current.rank_weight:
            best[signal.symbol] = signal
    return sorted(best.values(), key=lambda signal: (-signal.rank_weight, signal.symbol))


def _normalize(weights: Dict[str, float]) -> Dict[str, float]:
    total = sum(weights.values())
    return {symbol: weight / total * 100 for symbol, weight in weights.items()}


def recommended(strategies: Iterable[Strategy], tolerance: RiskTolerance) -> Optional[Strategy]:
    for strategy in strategies:
        if strategy.risk_level is tolerance:
            return strategy
    return None


class StrategyGenerator:
    def __init__(
        self,
        risk_gate: Optional[RiskGate] = None,
        policies: Sequence[TierPolicy] = TIER_POLICIES,
    ) -> None:
        self._gate = risk_gate or RiskGate()
        self._policies = tuple(policies)

    def generate(
        self,
        goal: Goal,
        universe: Iterable[AggregatedSignal],
        profile: RiskProfile,
        context: Optional[PortfolioState] = None,
    ) -> List[Strategy]:
        goal.validate()
        context = context or PortfolioState()
        ranked = rank_signals(universe)
        strategies = [self._build_tier(policy, goal, ranked, profile, context) for policy in self._policies]
        logger.info(
            'Generated %d strategies for target ROI %.1f%% over %d days from %d bullish signals',
            len(strategies),
            goal.target_roi,
            goal.timeframe_days,
            len(ranked),
        )
        return strategies

    def _build_tier(
        self,
        policy: TierPolicy,
        goal: Goal,
        ranked: Sequence[AggregatedSignal],
        profile: RiskProfile,
        context: PortfolioState,
    ) -> Strategy:
        expected_roi = goal.target_roi * policy.roi_multiplier
        eligible = [signal for signal in ranked if signal.composite_confidence >= policy.min_confidence]
        selected = {signal.symbol: signal for signal in eligible[: policy.max_symbols]}
        weights = {symbol: signal.rank_weight for symbol, signal in selected.items()}
        rejections: List[str] = []

        accepted: List[CandidateAllocation] = []
        while weights:
            shares = _normalize(weights)
            candidates = [
                self._candidate(selected[symbol], share, expected_roi, profile)
                for symbol, share in shares.items()
            ]
            rejected = []
            for candidate in candidates:
                result = self._gate.evaluate(candidate, profile, context)
                if not result.allowed:
                    rejected.append(candidate.symbol)
                    rejections.extend(reason.value for reason in result.reasons if reason.value not in rejections)
            if not rejected:
                accepted = candidates
                break
            # shares only grow after a drop, so survivors are re-checked
            for symbol in rejected:
                del weights[symbol]

        if not accepted:
            raise NoViableAllocations(policy.risk_level.value, rejections)
        return Strategy(
            name=policy.name,
            risk_level=policy.risk_level,
            expected_roi=expected_roi,
            max_drawdown=policy.max_drawdown,
            leverage=policy.leverage,
            allocations=tuple(accepted),
            description=policy.description,
        )

    @staticmethod
    def _candidate(
        signal: AggregatedSignal,
        share: float,
        expected_roi: float,
        profile: RiskProfile,
    ) -> CandidateAllocation:
        entry = signal.last_price or 0.0
        stop_loss = entry * (1 - profile.stop_loss_pct / 100) if profile.use_stop_loss and entry else None
        take_profit = entry * (1 + profile.take_profit_pct / 100) if profile.use_take_profit and entry else None
        return CandidateAllocation(
            symbol=signal.symbol,
            allocation_pct=share,
            entry_price=entry,
            target_price=entry * (1 + expected_roi / 100),
            source_signal=signal,
            side='BUY',
            stop_loss_price=stop_loss,
            take_profit_price=take_profit,
        )


__all__ = ['StrategyGenerator', 'TIER_POLICIES', 'rank_signals', 'recommended']
