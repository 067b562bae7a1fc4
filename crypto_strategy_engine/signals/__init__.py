"""Signal estimators and their aggregation."""

from .aggregator import SignalCollector, aggregate, summarize_universe
from .sources import (
    OnChainReading,
    OnChainSignalSource,
    SentimentReading,
    SentimentSignalSource,
    SignalSource,
    TechnicalSignalSource,
)
from .types import AggregatedSignal, Direction, Signal, SignalSourceKind, describe_score

__all__ = [
    'AggregatedSignal',
    'Direction',
    'OnChainReading',
    'OnChainSignalSource',
    'SentimentReading',
    'SentimentSignalSource',
    'Signal',
    'SignalCollector',
    'SignalSource',
    'SignalSourceKind',
    'TechnicalSignalSource',
    'aggregate',
    'describe_score',
    'summarize_universe',
]
