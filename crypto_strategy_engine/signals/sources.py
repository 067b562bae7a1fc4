"""The three independent estimators feeding the aggregator.

Sentiment and on-chain readings come from external feeds, injected as async
provider callables. The technical source derives its reading from exchange
candles across several timeframes.
"""

from __future__ import annotations

import abc
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from ..errors import SourceUnavailable
from ..exchanges import MarketDataSource
from ..utils import clamp, exponential_moving_average, moving_average, relative_strength_index
from .types import Direction, Signal, SignalSourceKind

logger = logging.getLogger(__name__)

# Source count at which a sentiment reading is considered fully confident.
SENTIMENT_FULL_CONFIDENCE_SOURCES = 500


@dataclass(frozen=True)
class SentimentReading:
    score: float
    source_count: int
    summary: str = ''


@dataclass(frozen=True)
class OnChainReading:
    """Whale and flow metrics. Changes are fractions versus the prior day."""

    whale_accumulation_score: float
    active_addresses_change: float = 0.0
    large_transactions_change: float = 0.0
    exchange_supply_change: float = 0.0


SentimentProvider = Callable[[str], Awaitable[SentimentReading]]
OnChainProvider = Callable[[str], Awaitable[OnChainReading]]


def _sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


class SignalSource(abc.ABC):
    kind: SignalSourceKind

    @abc.abstractmethod
    async def fetch(self, symbol: str) -> Signal:
        """Return a fresh signal for the symbol or raise a SourceError."""

    @property
    def name(self) -> str:
        return self.kind.value


class SentimentSignalSource(SignalSource):
    kind = SignalSourceKind.SENTIMENT

    def __init__(self, provider: SentimentProvider) -> None:
        self._provider = provider

    async def fetch(self, symbol: str) -> Signal:
        reading = await self._provider(symbol)
        confidence = clamp(reading.source_count / SENTIMENT_FULL_CONFIDENCE_SOURCES, 0.0, 1.0)
        return Signal(
            source=self.kind,
            symbol=symbol,
            score=clamp(reading.score, -1.0, 1.0),
            confidence=confidence,
            metadata={'source_count': reading.source_count, 'summary': reading.summary},
        )


class OnChainSignalSource(SignalSource):
    """Blends whale accumulation with network activity and exchange flows.

    Exchange supply shrinking means coins leave exchanges, which reads as
    accumulation, so that component is inverted. Confidence is the share of
    components agreeing on a direction.
    """

    kind = SignalSourceKind.ON_CHAIN
    WHALE_WEIGHT = 0.6
    ACTIVITY_WEIGHT = 0.2
    FLOW_WEIGHT = 0.2

    def __init__(self, provider: OnChainProvider) -> None:
        self._provider = provider

    async def fetch(self, symbol: str) -> Signal:
        reading = await self._provider(symbol)
        whale = clamp(reading.whale_accumulation_score, -1.0, 1.0)
        activity = clamp(reading.active_addresses_change * 5, -1.0, 1.0)
        flow = clamp(-reading.exchange_supply_change * 10, -1.0, 1.0)
        score = clamp(
            self.WHALE_WEIGHT * whale + self.ACTIVITY_WEIGHT * activity + self.FLOW_WEIGHT * flow,
            -1.0,
            1.0,
        )
        components = (whale, activity, flow)
        agreement = abs(sum(_sign(component) for component in components)) / len(components)
        return Signal(
            source=self.kind,
            symbol=symbol,
            score=score,
            confidence=agreement,
            metadata={'summary': self._summarize(reading), 'whale_score': whale},
        )

    @staticmethod
    def _summarize(reading: OnChainReading) -> str:
        if reading.whale_accumulation_score > 0.5 and reading.active_addresses_change > 0.1:
            return 'Strong on-chain activity. Whales are accumulating and network usage is spiking.'
        if reading.whale_accumulation_score < -0.5 and reading.large_transactions_change < -0.2:
            return 'Weak on-chain metrics. Whales are distributing and large transactions are low.'
        return 'Neutral on-chain metrics with no clear accumulation or distribution trend.'


class TechnicalSignalSource(SignalSource):
    """Multi-timeframe trend from EMA spread and RSI."""

    kind = SignalSourceKind.TECHNICAL

    def __init__(
        self,
        market_data: MarketDataSource,
        timeframes: Sequence[str] = ('1h', '4h', '1d'),
        limit: int = 100,
        fast_window: int = 12,
        slow_window: int = 26,
        rsi_period: int = 14,
    ) -> None:
        if not timeframes:
            raise ValueError('at least one timeframe is required')
        self._market_data = market_data
        self.timeframes = tuple(timeframes)
        self._limit = limit
        self._fast = fast_window
        self._slow = slow_window
        self._rsi_period = rsi_period

    async def fetch(self, symbol: str) -> Signal:
        candles = await asyncio.gather(
            *(self._market_data.get_klines(symbol, timeframe, self._limit) for timeframe in self.timeframes)
        )
        per_timeframe: Dict[str, float] = {}
        last_close: Optional[float] = None
        for timeframe, klines in zip(self.timeframes, candles):
            closes = [float(kline.close) for kline in klines]
            tf_score = self.score_closes(closes)
            if tf_score is None:
                logger.debug('Not enough %s candles for %s (%d)', timeframe, symbol, len(closes))
                continue
            per_timeframe[timeframe] = tf_score
            last_close = closes[-1]
        if not per_timeframe:
            raise SourceUnavailable(self.name, symbol, 'no timeframe had enough candle history')

        score = clamp(sum(per_timeframe.values()) / len(per_timeframe), -1.0, 1.0)
        overall = Direction.from_score(score)
        agreeing = sum(1 for value in per_timeframe.values() if Direction.from_score(value) is overall)
        trends = {timeframe: Direction.from_score(value).value for timeframe, value in per_timeframe.items()}
        return Signal(
            source=self.kind,
            symbol=symbol,
            score=score,
            confidence=agreeing / len(self.timeframes),
            metadata={'trends': trends, 'last_close': last_close},
        )

    def score_closes(self, closes: List[float]) -> Optional[float]:
        if len(closes) < max(self._slow, self._rsi_period + 1):
            return None
        fast = exponential_moving_average(closes, self._fast)[-1]
        slow = exponential_moving_average(closes, self._slow)[-1]
        sma = moving_average(closes, self._slow)[-1]
        if slow == 0 or sma == 0:
            return None
        # a 2% EMA spread saturates the trend component
        trend = clamp((fast - slow) / slow * 50, -1.0, 1.0)
        rsi = relative_strength_index(closes, self._rsi_period)
        momentum = 0.0 if rsi is None else (rsi - 50) / 50
        location = clamp((closes[-1] - sma) / sma * 20, -1.0, 1.0)
        return clamp(0.6 * trend + 0.25 * momentum + 0.15 * location, -1.0, 1.0)


__all__ = [
    'OnChainProvider',
    'OnChainReading',
    'OnChainSignalSource',
    'SentimentProvider',
    'SentimentReading',
    'SentimentSignalSource',
    'SignalSource',
    'TechnicalSignalSource',
]
