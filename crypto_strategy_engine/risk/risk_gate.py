"""Policy checks applied to every proposed allocation before it may proceed."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Tuple

from .profile import PortfolioState, RiskProfile

if TYPE_CHECKING:  # pragma: no cover
    from ..strategies.models import CandidateAllocation

logger = logging.getLogger(__name__)

# Absorbs float noise so values sitting exactly on a limit pass.
_EPSILON = 1e-9


class RiskViolation(str, enum.Enum):
    POSITION_TOO_LARGE = 'POSITION_TOO_LARGE'
    TOO_MANY_OPEN_POSITIONS = 'TOO_MANY_OPEN_POSITIONS'
    DAILY_LOSS_LIMIT_HIT = 'DAILY_LOSS_LIMIT_HIT'
    CONFIDENCE_TOO_LOW = 'CONFIDENCE_TOO_LOW'
    SYMBOL_NOT_ALLOWED = 'SYMBOL_NOT_ALLOWED'


GUIDANCE = {
    RiskViolation.POSITION_TOO_LARGE: 'Reduce the position size or raise the maximum position size.',
    RiskViolation.TOO_MANY_OPEN_POSITIONS: 'Close an open position or raise the maximum number of open positions.',
    RiskViolation.DAILY_LOSS_LIMIT_HIT: 'Daily loss limit reached; new positions resume next trading day.',
    RiskViolation.CONFIDENCE_TOO_LOW: 'Signal confidence is below your minimum; wait for stronger signals or lower the threshold.',
    RiskViolation.SYMBOL_NOT_ALLOWED: 'Add the symbol to your allowed symbols to trade it.',
}


@dataclass(frozen=True)
class RiskGateResult:
    reasons: Tuple[RiskViolation, ...] = ()

    @property
    def allowed(self) -> bool:
        return not self.reasons

    def guidance(self) -> List[str]:
        return [GUIDANCE[reason] for reason in self.reasons]


class RiskGate:
    """Stateless; the caller supplies a fresh PortfolioState for every check."""

    def evaluate(
        self,
        candidate: 'CandidateAllocation',
        profile: RiskProfile,
        context: PortfolioState,
    ) -> RiskGateResult:
        reasons: List[RiskViolation] = []
        if candidate.allocation_pct > profile.max_position_size_pct + _EPSILON:
            reasons.append(RiskViolation.POSITION_TOO_LARGE)
        if context.open_positions_count >= profile.max_open_positions:
            reasons.append(RiskViolation.TOO_MANY_OPEN_POSITIONS)
        if context.realized_loss_pct_today > profile.daily_loss_limit_pct + _EPSILON:
            reasons.append(RiskViolation.DAILY_LOSS_LIMIT_HIT)
        if candidate.source_signal.composite_confidence * 100 < profile.min_confidence - _EPSILON:
            reasons.append(RiskViolation.CONFIDENCE_TOO_LOW)
        if not profile.allows_symbol(candidate.symbol):
            reasons.append(RiskViolation.SYMBOL_NOT_ALLOWED)

        result = RiskGateResult(reasons=tuple(reasons))
        if not result.allowed:
            logger.debug(
                'Allocation %s %.2f%% rejected: %s',
                candidate.symbol,
                candidate.allocation_pct,
                ', '.join(reason.value for reason in reasons),
            )
        return result


__all__ = ['GUIDANCE', 'RiskGate', 'RiskGateResult', 'RiskViolation']
