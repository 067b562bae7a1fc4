"""Signal records produced by the estimators and the aggregator."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

BULLISH_THRESHOLD = 0.1
BEARISH_THRESHOLD = -0.1


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class SignalSourceKind(str, enum.Enum):
    SENTIMENT = 'sentiment'
    ON_CHAIN = 'on-chain'
    TECHNICAL = 'technical'


class Direction(str, enum.Enum):
    BULLISH = 'bullish'
    BEARISH = 'bearish'
    NEUTRAL = 'neutral'

    @classmethod
    def from_score(cls, score: float) -> 'Direction':
        if score > BULLISH_THRESHOLD:
            return cls.BULLISH
        if score < BEARISH_THRESHOLD:
            return cls.BEARISH
        return cls.NEUTRAL


def describe_score(score: float) -> str:
    """Dashboard sentence for a score in [-1, 1]."""
    if score > 0.5:
        return 'Strongly bullish across sources; momentum and positioning agree.'
    if score > BULLISH_THRESHOLD:
        return 'Moderately positive outlook with growing interest.'
    if score > BEARISH_THRESHOLD:
        return 'Neutral outlook, waiting for a catalyst.'
    if score > -0.5:
        return 'Slightly negative outlook, caution advised.'
    return 'Overwhelmingly bearish, fear in the market.'


@dataclass(frozen=True)
class Signal:
    source: SignalSourceKind
    symbol: str
    score: float
    confidence: float
    observed_at: datetime = field(default_factory=_utcnow)
    metadata: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        if not -1.0 <= self.score <= 1.0:
            raise ValueError(f'score must be within [-1, 1], got {self.score}')
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f'confidence must be within [0, 1], got {self.confidence}')
        object.__setattr__(self, 'source', SignalSourceKind(self.source))
        object.__setattr__(self, 'metadata', MappingProxyType(dict(self.metadata)))


@dataclass(frozen=True)
class AggregatedSignal:
    symbol: str
    composite_score: float
    composite_confidence: float
    direction: Direction
    constituents: Tuple[Signal, ...]
    last_price: Optional[float] = None
    computed_at: datetime = field(default_factory=_utcnow)

    @property
    def summary(self) -> str:
        return describe_score(self.composite_score)

    @property
    def rank_weight(self) -> float:
        return self.composite_score * self.composite_confidence

    def constituent(self, source: SignalSourceKind) -> Optional[Signal]:
        for signal in self.constituents:
            if signal.source == source:
                return signal
        return None


__all__ = [
    'AggregatedSignal',
    'BEARISH_THRESHOLD',
    'BULLISH_THRESHOLD',
    'Direction',
    'Signal',
    'SignalSourceKind',
    'describe_score',
]
