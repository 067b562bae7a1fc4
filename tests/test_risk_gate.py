"""Unit tests for :mod:`crypto_strategy_engine.risk.risk_gate`."""

from __future__ import annotations

import pytest

from crypto_strategy_engine.risk import PortfolioState, RiskGate, RiskProfile, RiskViolation
from crypto_strategy_engine.strategies import CandidateAllocation


def _candidate(make_aggregated, allocation_pct: float, confidence: float = 0.9, symbol: str = 'BTCUSDT'):
    signal = make_aggregated(symbol, 0.5, confidence)
    return CandidateAllocation(
        symbol=symbol,
        allocation_pct=allocation_pct,
        entry_price=100.0,
        target_price=110.0,
        source_signal=signal,
    )


def test_allocation_at_limit_is_allowed(make_aggregated) -> None:
    profile = RiskProfile(max_position_size_pct=10.0)

    result = RiskGate().evaluate(_candidate(make_aggregated, 10.0), profile, PortfolioState())

    assert result.allowed
    assert result.reasons == ()


def test_allocation_just_above_limit_is_rejected(make_aggregated) -> None:
    profile = RiskProfile(max_position_size_pct=10.0)

    result = RiskGate().evaluate(_candidate(make_aggregated, 10.01), profile, PortfolioState())

    assert not result.allowed
    assert result.reasons == (RiskViolation.POSITION_TOO_LARGE,)


def test_open_position_limit_blocks_any_candidate(make_aggregated) -> None:
    profile = RiskProfile(max_open_positions=3)
    context = PortfolioState(open_positions_count=3)

    result = RiskGate().evaluate(_candidate(make_aggregated, 1.0), profile, context)

    assert RiskViolation.TOO_MANY_OPEN_POSITIONS in result.reasons


def test_zero_open_positions_allowed_blocks_everything(make_aggregated) -> None:
    profile = RiskProfile(max_open_positions=0)

    result = RiskGate().evaluate(_candidate(make_aggregated, 1.0), profile, PortfolioState())

    assert result.reasons == (RiskViolation.TOO_MANY_OPEN_POSITIONS,)


def test_daily_loss_limit(make_aggregated) -> None:
    profile = RiskProfile(daily_loss_limit_pct=5.0)
    gate = RiskGate()

    at_limit = gate.evaluate(_candidate(make_aggregated, 1.0), profile, PortfolioState(realized_loss_pct_today=5.0))
    beyond = gate.evaluate(_candidate(make_aggregated, 1.0), profile, PortfolioState(realized_loss_pct_today=5.5))

    assert at_limit.allowed
    assert beyond.reasons == (RiskViolation.DAILY_LOSS_LIMIT_HIT,)


def test_confidence_is_compared_in_percent(make_aggregated) -> None:
    profile = RiskProfile(min_confidence=75.0)
    gate = RiskGate()

    assert gate.evaluate(_candidate(make_aggregated, 1.0, confidence=0.75), profile, PortfolioState()).allowed
    result = gate.evaluate(_candidate(make_aggregated, 1.0, confidence=0.7), profile, PortfolioState())
    assert result.reasons == (RiskViolation.CONFIDENCE_TOO_LOW,)


def test_symbol_allow_list(make_aggregated) -> None:
    profile = RiskProfile(allowed_symbols=['btcusdt', 'ETHUSDT'])
    gate = RiskGate()

    assert gate.evaluate(_candidate(make_aggregated, 1.0), profile, PortfolioState()).allowed
    result = gate.evaluate(_candidate(make_aggregated, 1.0, symbol='DOGEUSDT'), profile, PortfolioState())
    assert result.reasons == (RiskViolation.SYMBOL_NOT_ALLOWED,)


def test_every_check_runs_even_after_a_failure(make_aggregated) -> None:
    profile = RiskProfile(
        max_position_size_pct=10.0,
        max_open_positions=1,
        daily_loss_limit_pct=2.0,
        min_confidence=90.0,
        allowed_symbols=['ETHUSDT'],
    )
    context = PortfolioState(open_positions_count=1, realized_loss_pct_today=3.0)

    result = RiskGate().evaluate(_candidate(make_aggregated, 25.0, confidence=0.5), profile, context)

    assert result.reasons == (
        RiskViolation.POSITION_TOO_LARGE,
        RiskViolation.TOO_MANY_OPEN_POSITIONS,
        RiskViolation.DAILY_LOSS_LIMIT_HIT,
        RiskViolation.CONFIDENCE_TOO_LOW,
        RiskViolation.SYMBOL_NOT_ALLOWED,
    )
    assert len(result.guidance()) == 5


def test_size_and_confidence_violations_reported_together(make_aggregated) -> None:
    profile = RiskProfile(max_position_size_pct=10.0, min_confidence=80.0)

    result = RiskGate().evaluate(_candidate(make_aggregated, 40.0, confidence=0.5), profile, PortfolioState())

    assert result.reasons == (RiskViolation.POSITION_TOO_LARGE, RiskViolation.CONFIDENCE_TOO_LOW)


def test_profile_defaults_and_validation() -> None:
    profile = RiskProfile()

    assert profile.max_position_size_pct == 10.0
    assert profile.max_open_positions == 3
    assert profile.daily_loss_limit_pct == 5.0
    assert profile.min_confidence == 75.0
    assert profile.slippage_tolerance_pct == pytest.approx(0.5)
    assert profile.allows_symbol('ANYUSDT')

    with pytest.raises(ValueError):
        RiskProfile(max_position_size_pct=120.0)
    with pytest.raises(ValueError):
        profile.with_updates(max_open_positions=-1)
    with pytest.raises(ValueError):
        profile.with_updates(unknown_field=1)


def test_profile_update_returns_new_instance() -> None:
    profile = RiskProfile()

    updated = profile.with_updates(max_position_size_pct=25.0, min_confidence=None)

    assert updated.max_position_size_pct == 25.0
    assert updated.min_confidence == profile.min_confidence
    assert profile.max_position_size_pct == 10.0
