"""Error taxonomy shared by the signal, strategy and execution layers."""

from __future__ import annotations

from typing import Sequence


class StrategyEngineError(Exception):
    """Base class for recoverable, locally computed failures."""


class InsufficientSignalData(StrategyEngineError):
    """Raised when no usable signal is available for a symbol."""

    def __init__(self, symbol: str, detail: str = 'no signals available') -> None:
        super().__init__(f'Insufficient signal data for {symbol}: {detail}')
        self.symbol = symbol


class DegenerateWeights(StrategyEngineError):
    """Raised when every constituent signal carries zero confidence."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f'Signals for {symbol} have zero total confidence')
        self.symbol = symbol


class InvalidGoal(StrategyEngineError):
    """Raised when a goal submission has a non-positive ROI, capital or timeframe."""


class NoViableAllocations(StrategyEngineError):
    """Raised when a risk tier ends up with no allocation passing the risk gate.

    Callers should surface this as insufficient signal coverage rather than a
    crash.
    """

    def __init__(self, risk_level: str, reasons: Sequence[str] = ()) -> None:
        detail = ', '.join(reasons) if reasons else 'no bullish signals met the tier requirements'
        super().__init__(f'No viable allocations for {risk_level} tier ({detail})')
        self.risk_level = risk_level
        self.reasons = tuple(reasons)


class OrderRejected(StrategyEngineError):
    """Raised when the exchange refuses an order."""


class SourceError(StrategyEngineError):
    """Failure of a single signal source; absorbed by the collector."""

    def __init__(self, source: str, symbol: str, detail: str) -> None:
        super().__init__(f'{source} source failed for {symbol}: {detail}')
        self.source = source
        self.symbol = symbol


class SourceTimeout(SourceError):
    pass


class SourceUnavailable(SourceError):
    pass


__all__ = [
    'StrategyEngineError',
    'InsufficientSignalData',
    'DegenerateWeights',
    'InvalidGoal',
    'NoViableAllocations',
    'OrderRejected',
    'SourceError',
    'SourceTimeout',
    'SourceUnavailable',
]
