"""Confidence-weighted fusion of estimator signals."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence

from ..errors import DegenerateWeights, InsufficientSignalData, SourceError, SourceTimeout, SourceUnavailable
from ..exchanges import MarketDataSource
from ..utils import chunked
from .sources import SignalSource
from .types import AggregatedSignal, Direction, Signal

logger = logging.getLogger(__name__)


def aggregate(
    symbol: str,
    signals: Iterable[Signal],
    last_price: Optional[float] = None,
) -> AggregatedSignal:
    """Fuse signals into one view of ``symbol``.

    The composite score is the confidence-weighted mean of the scores. The
    composite confidence is the plain mean of the confidences.
    """
    constituents = tuple(signals)
    if not constituents:
        raise InsufficientSignalData(symbol)
    for signal in constituents:
        if signal.symbol != symbol:
            raise ValueError(f'Signal for {signal.symbol} passed while aggregating {symbol}')

    total_confidence = math.fsum(signal.confidence for signal in constituents)
    if total_confidence == 0:
        raise DegenerateWeights(symbol)
    weighted = math.fsum(signal.score * signal.confidence for signal in constituents)
    score = weighted / total_confidence
    return AggregatedSignal(
        symbol=symbol,
        composite_score=score,
        composite_confidence=total_confidence / len(constituents),
        direction=Direction.from_score(score),
        constituents=constituents,
        last_price=last_price,
    )


class SignalCollector:
    """Fetches every source concurrently and aggregates whatever arrived in time.

    A source that raises or exceeds ``timeout`` is left out of the average
    rather than counted as a zero score.
    """

    def __init__(
        self,
        sources: Sequence[SignalSource],
        market_data: Optional[MarketDataSource] = None,
        timeout: float = 5.0,
        max_concurrent_symbols: int = 5,
    ) -> None:
        if not sources:
            raise ValueError('at least one signal source is required')
        self._sources = list(sources)
        self._market_data = market_data
        self._timeout = timeout
        self._batch_size = max_concurrent_symbols

    async def collect(self, symbol: str) -> AggregatedSignal:
        symbol = symbol.upper()
        price_task = self._fetch_price(symbol)
        results = await asyncio.gather(
            price_task,
            *(self._fetch_one(source, symbol) for source in self._sources),
        )
        last_price, fetched = results[0], results[1:]
        signals = [signal for signal in fetched if signal is not None]
        if not signals:
            raise InsufficientSignalData(symbol, 'every signal source failed')
        return aggregate(symbol, signals, last_price=last_price)

    async def collect_universe(self, symbols: Iterable[str]) -> List[AggregatedSignal]:
        """Aggregate several symbols, skipping the ones without usable data."""
        universe: List[AggregatedSignal] = []
        for batch in chunked(list(symbols), self._batch_size):
            results = await asyncio.gather(
                *(self.collect(symbol) for symbol in batch),
                return_exceptions=True,
            )
            for symbol, result in zip(batch, results):
                if isinstance(result, (InsufficientSignalData, DegenerateWeights)):
                    logger.warning('Skipping %s: %s', symbol, result)
                    continue
                if isinstance(result, BaseException):
                    raise result
                universe.append(result)
        return universe

    async def _fetch_one(self, source: SignalSource, symbol: str) -> Optional[Signal]:
        try:
            return await asyncio.wait_for(source.fetch(symbol), timeout=self._timeout)
        except asyncio.TimeoutError:
            error: SourceError = SourceTimeout(source.name, symbol, f'no answer within {self._timeout}s')
        except SourceError as exc:
            error = exc
        except Exception as exc:
            error = SourceUnavailable(source.name, symbol, str(exc) or type(exc).__name__)
        logger.warning('Excluding signal source: %s', error)
        return None

    async def _fetch_price(self, symbol: str) -> Optional[float]:
        if self._market_data is None:
            return None
        try:
            raw = await asyncio.wait_for(self._market_data.get_current_price(symbol), timeout=self._timeout)
            price = float(raw)
        except asyncio.TimeoutError:
            logger.warning('No price for %s within %ss', symbol, self._timeout)
            return None
        except Exception as exc:
            logger.warning('No price for %s: %s', symbol, exc)
            return None
        return price if price > 0 else None


def summarize_universe(universe: Iterable[AggregatedSignal]) -> Dict[str, int]:
    counts = {direction.value: 0 for direction in Direction}
    for signal in universe:
        counts[signal.direction.value] += 1
    return counts


__all__ = ['SignalCollector', 'aggregate', 'summarize_universe']
