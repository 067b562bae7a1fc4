"""Pytest configuration shared by the test suite."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Sequence

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from crypto_strategy_engine.signals import AggregatedSignal, Signal, SignalSourceKind, aggregate  # noqa: E402

SignalFactory = Callable[..., AggregatedSignal]


@pytest.fixture
def make_aggregated() -> SignalFactory:
    """Build an AggregatedSignal with the requested score and confidence."""

    def _make(
        symbol: str,
        score: float,
        confidence: float,
        price: float | None = 100.0,
        sources: Sequence[SignalSourceKind] = (SignalSourceKind.TECHNICAL,),
    ) -> AggregatedSignal:
        signals = [Signal(source=source, symbol=symbol, score=score, confidence=confidence) for source in sources]
        return aggregate(symbol, signals, last_price=price)

    return _make
