"""Tests for the dashboard payloads."""

from __future__ import annotations

from crypto_strategy_engine.monitoring import ROI_DISCLAIMER, gate_view, signal_view, strategy_view
from crypto_strategy_engine.risk import PortfolioState, RiskGate, RiskProfile
from crypto_strategy_engine.strategies import CandidateAllocation, Goal, StrategyGenerator


def test_signal_view_shows_confidence_in_percent(make_aggregated) -> None:
    view = signal_view(make_aggregated('BTCUSDT', 0.55, 0.8))

    assert view['confidence'] == 80.0
    assert view['direction'] == 'bullish'
    assert view['sources'][0]['source'] == 'technical'


def test_strategy_view_carries_disclaimer(make_aggregated) -> None:
    profile = RiskProfile(max_position_size_pct=100.0, min_confidence=0.0)
    goal = Goal(target_roi=20.0, capital=1_000.0, timeframe_days=30)
    strategy = StrategyGenerator().generate(goal, [make_aggregated('ETHUSDT', 0.5, 0.9)], profile)[0]

    view = strategy_view(strategy)

    assert view['risk_level'] == 'conservative'
    assert view['disclaimer'] == ROI_DISCLAIMER
    assert view['allocations'][0]['allocation_pct'] == 100.0


def test_gate_view_lists_reasons_and_guidance(make_aggregated) -> None:
    signal = make_aggregated('DOGEUSDT', 0.5, 0.2)
    candidate = CandidateAllocation(
        symbol='DOGEUSDT',
        allocation_pct=50.0,
        entry_price=0.1,
        target_price=0.12,
        source_signal=signal,
    )

    view = gate_view(RiskGate().evaluate(candidate, RiskProfile(), PortfolioState()))

    assert not view['allowed']
    assert view['reasons'] == ['POSITION_TOO_LARGE', 'CONFIDENCE_TOO_LOW']
    assert len(view['guidance']) == 2
