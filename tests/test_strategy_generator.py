"""Tests for :mod:`crypto_strategy_engine.strategies.generator`."""

from __future__ import annotations

import pytest

from crypto_strategy_engine.errors import InvalidGoal, NoViableAllocations
from crypto_strategy_engine.risk import PortfolioState, RiskProfile, RiskTolerance
from crypto_strategy_engine.strategies import Goal, StrategyGenerator, rank_signals, recommended

PERMISSIVE = RiskProfile(max_position_size_pct=100.0, max_open_positions=10, min_confidence=0.0)
GOAL = Goal(target_roi=30.0, capital=10_000.0, timeframe_days=30)


def test_returns_three_tiers_in_fixed_order(make_aggregated) -> None:
    universe = [make_aggregated(symbol, 0.6, 0.9) for symbol in ('BTCUSDT', 'ETHUSDT', 'SOLUSDT')]
    goal = Goal(target_roi=30.0, capital=5_000.0, timeframe_days=14, risk_tolerance='aggressive')

    strategies = StrategyGenerator().generate(goal, universe, PERMISSIVE)

    assert [strategy.risk_level for strategy in strategies] == [
        RiskTolerance.CONSERVATIVE,
        RiskTolerance.MODERATE,
        RiskTolerance.AGGRESSIVE,
    ]
    assert [strategy.leverage for strategy in strategies] == [1, 2, 5]
    assert [strategy.max_drawdown for strategy in strategies] == [10.0, 20.0, 35.0]
    assert [strategy.expected_roi for strategy in strategies] == pytest.approx([18.0, 30.0, 45.0])
    assert all(strategy.illustrative for strategy in strategies)
    assert recommended(strategies, goal.risk_tolerance) is strategies[2]


def test_allocations_sum_to_one_hundred(make_aggregated) -> None:
    universe = [
        make_aggregated('BTCUSDT', 0.8, 0.95),
        make_aggregated('ETHUSDT', 0.6, 0.9),
        make_aggregated('SOLUSDT', 0.4, 0.85),
        make_aggregated('BNBUSDT', 0.3, 0.8),
        make_aggregated('AVAXUSDT', 0.25, 0.75),
        make_aggregated('DOGEUSDT', 0.2, 0.72),
    ]

    for strategy in StrategyGenerator().generate(GOAL, universe, PERMISSIVE):
        assert strategy.total_allocation_pct == pytest.approx(100.0)


def test_top_k_per_tier_ranked_by_score_times_confidence(make_aggregated) -> None:
    universe = [
        make_aggregated('DOGEUSDT', 0.2, 0.72),
        make_aggregated('ETHUSDT', 0.6, 0.9),
        make_aggregated('BTCUSDT', 0.8, 0.95),
        make_aggregated('AVAXUSDT', 0.25, 0.75),
        make_aggregated('SOLUSDT', 0.4, 0.85),
        make_aggregated('BNBUSDT', 0.3, 0.8),
    ]

    conservative, moderate, aggressive = StrategyGenerator().generate(GOAL, universe, PERMISSIVE)

    assert conservative.symbols == ('BTCUSDT', 'ETHUSDT', 'SOLUSDT')
    assert moderate.symbols == ('BTCUSDT', 'ETHUSDT', 'SOLUSDT', 'BNBUSDT')
    assert aggressive.symbols == ('BTCUSDT', 'ETHUSDT', 'SOLUSDT', 'BNBUSDT', 'AVAXUSDT')
    weights = [0.8 * 0.95, 0.6 * 0.9, 0.4 * 0.85]
    assert [a.allocation_pct for a in conservative.allocations] == pytest.approx(
        [weight / sum(weights) * 100 for weight in weights]
    )


def test_ties_break_on_symbol_name(make_aggregated) -> None:
    universe = [make_aggregated(symbol, 0.5, 0.9) for symbol in ('SOLUSDT', 'ADAUSDT', 'ETHUSDT', 'BTCUSDT')]

    assert [signal.symbol for signal in rank_signals(universe)] == ['ADAUSDT', 'BTCUSDT', 'ETHUSDT', 'SOLUSDT']


def test_only_bullish_signals_are_used(make_aggregated) -> None:
    universe = [
        make_aggregated('BTCUSDT', 0.5, 0.9),
        make_aggregated('ETHUSDT', 0.05, 0.95),
        make_aggregated('SOLUSDT', -0.6, 0.95),
    ]

    for strategy in StrategyGenerator().generate(GOAL, universe, PERMISSIVE):
        assert strategy.symbols == ('BTCUSDT',)
        assert strategy.allocations[0].allocation_pct == pytest.approx(100.0)


def test_tier_confidence_minimums(make_aggregated) -> None:
    universe = [make_aggregated('BTCUSDT', 0.5, 0.9), make_aggregated('PEPEUSDT', 0.9, 0.45)]

    conservative, moderate, aggressive = StrategyGenerator().generate(GOAL, universe, PERMISSIVE)

    assert 'PEPEUSDT' not in conservative.symbols
    assert 'PEPEUSDT' not in moderate.symbols
    assert 'PEPEUSDT' in aggressive.symbols


def test_rejected_share_is_redistributed(make_aggregated) -> None:
    universe = [
        make_aggregated('BTCUSDT', 0.9, 0.9),
        make_aggregated('ETHUSDT', 0.5, 0.9),
        make_aggregated('SOLUSDT', 0.2, 0.9),
    ]
    profile = PERMISSIVE.with_updates(allowed_symbols=['BTCUSDT', 'SOLUSDT'])

    conservative = StrategyGenerator().generate(GOAL, universe, profile)[0]

    assert conservative.symbols == ('BTCUSDT', 'SOLUSDT')
    assert [a.allocation_pct for a in conservative.allocations] == pytest.approx([0.9 / 1.1 * 100, 0.2 / 1.1 * 100])


def test_allocations_respect_position_limit(make_aggregated) -> None:
    universe = [make_aggregated(symbol, 0.5, 0.9) for symbol in ('A', 'B', 'C', 'D', 'E', 'F')]
    profile = PERMISSIVE.with_updates(max_position_size_pct=40.0)

    for strategy in StrategyGenerator().generate(GOAL, universe, profile):
        assert all(allocation.allocation_pct <= 40.0 for allocation in strategy.allocations)
        assert strategy.total_allocation_pct == pytest.approx(100.0)


def test_position_limit_below_tier_floor_leaves_no_viable_allocation(make_aggregated) -> None:
    universe = [make_aggregated(symbol, 0.5, 0.9) for symbol in ('BTCUSDT', 'ETHUSDT', 'SOLUSDT')]

    with pytest.raises(NoViableAllocations) as excinfo:
        StrategyGenerator().generate(GOAL, universe, RiskProfile(min_confidence=0.0))

    assert excinfo.value.risk_level == 'conservative'
    assert 'POSITION_TOO_LARGE' in excinfo.value.reasons


def test_full_portfolio_blocks_generation(make_aggregated) -> None:
    universe = [make_aggregated('BTCUSDT', 0.5, 0.9)]

    with pytest.raises(NoViableAllocations) as excinfo:
        StrategyGenerator().generate(GOAL, universe, PERMISSIVE, PortfolioState(open_positions_count=10))

    assert excinfo.value.reasons == ('TOO_MANY_OPEN_POSITIONS',)


def test_no_bullish_signals_means_no_viable_allocations(make_aggregated) -> None:
    universe = [make_aggregated('BTCUSDT', -0.5, 0.9)]

    with pytest.raises(NoViableAllocations):
        StrategyGenerator().generate(GOAL, universe, PERMISSIVE)


@pytest.mark.parametrize(
    'goal',
    [
        Goal(target_roi=0.0, capital=1_000.0, timeframe_days=30),
        Goal(target_roi=10.0, capital=-1.0, timeframe_days=30),
        Goal(target_roi=10.0, capital=1_000.0, timeframe_days=0),
    ],
)
def test_invalid_goal(goal: Goal, make_aggregated) -> None:
    with pytest.raises(InvalidGoal):
        StrategyGenerator().generate(goal, [make_aggregated('BTCUSDT', 0.5, 0.9)], PERMISSIVE)


def test_prices_follow_tier_roi_and_profile_exits(make_aggregated) -> None:
    universe = [make_aggregated('BTCUSDT', 0.5, 0.9, price=200.0)]
    profile = PERMISSIVE.with_updates(stop_loss_pct=2.0, take_profit_pct=5.0)

    moderate = StrategyGenerator().generate(GOAL, universe, profile)[1]
    allocation = moderate.allocations[0]

    assert allocation.entry_price == pytest.approx(200.0)
    assert allocation.target_price == pytest.approx(260.0)
    assert allocation.stop_loss_price == pytest.approx(196.0)
    assert allocation.take_profit_price == pytest.approx(210.0)
    assert allocation.side == 'BUY'
    assert allocation.source_signal is universe[0]


def test_stop_loss_omitted_when_disabled(make_aggregated) -> None:
    universe = [make_aggregated('BTCUSDT', 0.5, 0.9)]
    profile = PERMISSIVE.with_updates(use_stop_loss=False, use_take_profit=False)

    allocation = StrategyGenerator().generate(GOAL, universe, profile)[0].allocations[0]

    assert allocation.stop_loss_price is None
    assert allocation.take_profit_price is None
