"""Read-only payloads for the dashboard panels."""

from __future__ import annotations

from typing import Any, Dict

from ..risk import RiskGateResult
from ..signals import AggregatedSignal
from ..strategies import Strategy

ROI_DISCLAIMER = 'Expected ROI is an illustrative estimate, not a guarantee or a backtested result.'


def signal_view(signal: AggregatedSignal) -> Dict[str, Any]:
    return {
        'symbol': signal.symbol,
        'score': round(signal.composite_score, 4),
        'confidence': round(signal.composite_confidence * 100, 1),
        'direction': signal.direction.value,
        'summary': signal.summary,
        'price': signal.last_price,
        'computed_at': signal.computed_at.isoformat(),
        'sources': [
            {
                'source': constituent.source.value,
                'score': constituent.score,
                'confidence': constituent.confidence,
                'observed_at': constituent.observed_at.isoformat(),
            }
            for constituent in signal.constituents
        ],
    }


def strategy_view(strategy: Strategy) -> Dict[str, Any]:
    return {
        'name': strategy.name,
        'risk_level': strategy.risk_level.value,
        'expected_roi': round(strategy.expected_roi, 2),
        'max_drawdown': strategy.max_drawdown,
        'leverage': strategy.leverage,
        'description': strategy.description,
        'disclaimer': ROI_DISCLAIMER if strategy.illustrative else None,
        'allocations': [
            {
                'symbol': allocation.symbol,
                'allocation_pct': round(allocation.allocation_pct, 2),
                'entry_price': allocation.entry_price,
                'target_price': allocation.target_price,
                'stop_loss_price': allocation.stop_loss_price,
                'take_profit_price': allocation.take_profit_price,
                'side': allocation.side,
                'direction': allocation.source_signal.direction.value,
            }
            for allocation in strategy.allocations
        ],
    }


def gate_view(result: RiskGateResult) -> Dict[str, Any]:
    return {
        'allowed': result.allowed,
        'reasons': [reason.value for reason in result.reasons],
        'guidance': result.guidance(),
    }


__all__ = ['ROI_DISCLAIMER', 'gate_view', 'signal_view', 'strategy_view']
