"""Tests for the estimators and the concurrent collector in :mod:`crypto_strategy_engine.signals`."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

import pytest

from crypto_strategy_engine.errors import InsufficientSignalData, SourceUnavailable
from crypto_strategy_engine.exchanges import Kline, MarketDataSource
from crypto_strategy_engine.signals import (
    Direction,
    OnChainReading,
    OnChainSignalSource,
    SentimentReading,
    SentimentSignalSource,
    Signal,
    SignalCollector,
    SignalSource,
    SignalSourceKind,
    TechnicalSignalSource,
)


def _klines(closes: List[float]) -> List[Kline]:
    return [
        Kline(
            open_time=index * 60_000,
            open=str(close),
            high=str(close * 1.01),
            low=str(close * 0.99),
            close=str(close),
            volume='10',
            close_time=(index + 1) * 60_000 - 1,
        )
        for index, close in enumerate(closes)
    ]


class FakeMarketData(MarketDataSource):
    def __init__(self, klines: Dict[str, List[Kline]], price: str = '101.5') -> None:
        self._klines = klines
        self._price = price
        self.kline_calls: List[tuple] = []

    async def get_current_price(self, symbol: str) -> str:
        return self._price

    async def get_klines(self, symbol, interval, limit=100, start_time=None, end_time=None):
        self.kline_calls.append((symbol, interval, limit))
        return self._klines.get(interval, [])


class StaticSource(SignalSource):
    def __init__(self, kind: SignalSourceKind, score: float, confidence: float) -> None:
        self.kind = kind
        self._score = score
        self._confidence = confidence

    async def fetch(self, symbol: str) -> Signal:
        return Signal(source=self.kind, symbol=symbol, score=self._score, confidence=self._confidence)


class FailingSource(SignalSource):
    kind = SignalSourceKind.ON_CHAIN

    async def fetch(self, symbol: str) -> Signal:
        raise RuntimeError('feed offline')


class SlowSource(SignalSource):
    kind = SignalSourceKind.SENTIMENT

    async def fetch(self, symbol: str) -> Signal:
        await asyncio.sleep(5)
        return Signal(source=self.kind, symbol=symbol, score=-1.0, confidence=1.0)


def test_sentiment_confidence_scales_with_source_count() -> None:
    async def provider(symbol: str) -> SentimentReading:
        return SentimentReading(score=0.4, source_count=250, summary='positive')

    signal = asyncio.run(SentimentSignalSource(provider).fetch('BTCUSDT'))

    assert signal.source is SignalSourceKind.SENTIMENT
    assert signal.score == pytest.approx(0.4)
    assert signal.confidence == pytest.approx(0.5)
    assert signal.metadata['source_count'] == 250


def test_on_chain_blends_whales_activity_and_flows() -> None:
    async def provider(symbol: str) -> OnChainReading:
        return OnChainReading(
            whale_accumulation_score=0.8,
            active_addresses_change=0.15,
            exchange_supply_change=-0.05,
        )

    signal = asyncio.run(OnChainSignalSource(provider).fetch('ETHUSDT'))

    assert signal.score == pytest.approx(0.6 * 0.8 + 0.2 * 0.75 + 0.2 * 0.5)
    assert signal.confidence == pytest.approx(1.0)
    assert signal.metadata['summary'].startswith('Strong on-chain activity')


def test_technical_source_reads_rising_market_as_bullish() -> None:
    rising = _klines([100.0 + step for step in range(100)])
    market_data = FakeMarketData({'1h': rising, '4h': rising, '1d': rising})

    signal = asyncio.run(TechnicalSignalSource(market_data).fetch('BTCUSDT'))

    assert signal.score > 0.5
    assert signal.confidence == pytest.approx(1.0)
    assert signal.metadata['trends'] == {'1h': 'bullish', '4h': 'bullish', '1d': 'bullish'}
    assert {call[1] for call in market_data.kline_calls} == {'1h', '4h', '1d'}


def test_technical_source_discounts_timeframes_without_history() -> None:
    falling = _klines([300.0 - step for step in range(100)])
    market_data = FakeMarketData({'1h': falling, '4h': falling, '1d': falling[:10]})

    signal = asyncio.run(TechnicalSignalSource(market_data).fetch('SOLUSDT'))

    assert signal.score < -0.1
    assert signal.confidence == pytest.approx(2 / 3)
    assert '1d' not in signal.metadata['trends']


def test_technical_source_without_candles_is_unavailable() -> None:
    market_data = FakeMarketData({})

    with pytest.raises(SourceUnavailable):
        asyncio.run(TechnicalSignalSource(market_data).fetch('BTCUSDT'))


def test_collector_excludes_failed_and_slow_sources() -> None:
    collector = SignalCollector(
        [
            SlowSource(),
            FailingSource(),
            StaticSource(SignalSourceKind.TECHNICAL, score=0.5, confidence=0.8),
        ],
        market_data=FakeMarketData({}),
        timeout=0.05,
    )

    result = asyncio.run(collector.collect('btcusdt'))

    assert result.symbol == 'BTCUSDT'
    assert [signal.source for signal in result.constituents] == [SignalSourceKind.TECHNICAL]
    assert result.composite_score == pytest.approx(0.5)
    assert result.direction is Direction.BULLISH
    assert result.last_price == pytest.approx(101.5)


def test_collector_raises_when_every_source_fails() -> None:
    collector = SignalCollector([FailingSource(), SlowSource()], timeout=0.05)

    with pytest.raises(InsufficientSignalData):
        asyncio.run(collector.collect('BTCUSDT'))


def test_collector_ignores_sentinel_price() -> None:
    collector = SignalCollector(
        [StaticSource(SignalSourceKind.TECHNICAL, score=0.2, confidence=0.5)],
        market_data=FakeMarketData({}, price='0'),
    )

    result = asyncio.run(collector.collect('ETHUSDT'))

    assert result.last_price is None


class PerSymbolSource(SignalSource):
    kind = SignalSourceKind.TECHNICAL

    def __init__(self, scores: Dict[str, Optional[float]]) -> None:
        self._scores = scores

    async def fetch(self, symbol: str) -> Signal:
        score = self._scores[symbol]
        if score is None:
            raise SourceUnavailable(self.name, symbol, 'no data')
        return Signal(source=self.kind, symbol=symbol, score=score, confidence=0.9)


def test_collect_universe_skips_symbols_without_data() -> None:
    source = PerSymbolSource({'BTCUSDT': 0.4, 'ETHUSDT': None, 'SOLUSDT': -0.3})
    collector = SignalCollector([source], max_concurrent_symbols=2)

    universe = asyncio.run(collector.collect_universe(['BTCUSDT', 'ETHUSDT', 'SOLUSDT']))

    assert [signal.symbol for signal in universe] == ['BTCUSDT', 'SOLUSDT']
    assert [signal.direction for signal in universe] == [Direction.BULLISH, Direction.BEARISH]


class BrokenPriceMarketData(FakeMarketData):
    def __init__(self, failures: Dict[str, Exception]) -> None:
        super().__init__({})
        self._failures = failures

    async def get_current_price(self, symbol: str) -> str:
        if symbol in self._failures:
            raise self._failures[symbol]
        return 'not-a-number'


def test_price_failures_leave_last_price_empty() -> None:
    market_data = BrokenPriceMarketData({'BTCUSDT': ConnectionError('ticker offline')})
    collector = SignalCollector(
        [PerSymbolSource({'BTCUSDT': 0.4, 'ETHUSDT': -0.3})],
        market_data=market_data,
    )

    single = asyncio.run(collector.collect('BTCUSDT'))
    universe = asyncio.run(collector.collect_universe(['BTCUSDT', 'ETHUSDT']))

    assert single.last_price is None
    assert single.composite_score == pytest.approx(0.4)
    assert [signal.symbol for signal in universe] == ['BTCUSDT', 'ETHUSDT']
    assert all(signal.last_price is None for signal in universe)
