"""Per-user risk configuration and the portfolio snapshot the gate checks against."""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass
from typing import AbstractSet, Any, FrozenSet, Iterable, Union

ALL_SYMBOLS = 'all'

AllowedSymbols = Union[str, FrozenSet[str]]


class RiskTolerance(str, enum.Enum):
    CONSERVATIVE = 'conservative'
    MODERATE = 'moderate'
    AGGRESSIVE = 'aggressive'


def normalize_allowed_symbols(value: Union[str, Iterable[str], None]) -> AllowedSymbols:
    """``None`` and ``'all'`` mean every symbol; anything else becomes an upper-cased frozenset."""
    if value is None or value == ALL_SYMBOLS:
        return ALL_SYMBOLS
    if isinstance(value, str):
        raise ValueError(f'allowed_symbols must be {ALL_SYMBOLS!r} or a collection of symbols')
    return frozenset(symbol.upper() for symbol in value)


@dataclass(frozen=True)
class RiskProfile:
    """User-owned limits. Percentages are plain percentages (0.5 means 0.5%)."""

    max_position_size_pct: float = 10.0
    max_open_positions: int = 3
    daily_loss_limit_pct: float = 5.0
    min_confidence: float = 75.0
    use_stop_loss: bool = True
    stop_loss_pct: float = 2.0
    use_take_profit: bool = True
    take_profit_pct: float = 5.0
    allowed_symbols: AllowedSymbols = ALL_SYMBOLS
    risk_tolerance: RiskTolerance = RiskTolerance.MODERATE
    use_limit_orders: bool = True
    slippage_tolerance_pct: float = 0.5

    def __post_init__(self) -> None:
        for name in ('max_position_size_pct', 'daily_loss_limit_pct', 'min_confidence'):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f'{name} must be between 0 and 100, got {value}')
        for name in ('stop_loss_pct', 'take_profit_pct', 'slippage_tolerance_pct'):
            value = getattr(self, name)
            if not 0 <= value < 100:
                raise ValueError(f'{name} must be between 0 and 100, got {value}')
        if self.max_open_positions < 0:
            raise ValueError('max_open_positions must not be negative')
        object.__setattr__(self, 'allowed_symbols', normalize_allowed_symbols(self.allowed_symbols))
        object.__setattr__(self, 'risk_tolerance', RiskTolerance(self.risk_tolerance))

    def allows_symbol(self, symbol: str) -> bool:
        if self.allowed_symbols == ALL_SYMBOLS:
            return True
        return symbol.upper() in self.allowed_symbols

    def with_updates(self, **changes: Any) -> 'RiskProfile':
        """Return a validated copy with ``changes`` applied; ``None`` values are ignored."""
        unknown = set(changes) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise ValueError(f'Unknown risk profile fields: {", ".join(sorted(unknown))}')
        applied = {key: value for key, value in changes.items() if value is not None}
        return dataclasses.replace(self, **applied)

    def as_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data['risk_tolerance'] = self.risk_tolerance.value
        allowed: AbstractSet[str] | str = self.allowed_symbols
        data['allowed_symbols'] = allowed if allowed == ALL_SYMBOLS else sorted(allowed)
        return data


DEFAULT_RISK_PROFILE = RiskProfile()


@dataclass(frozen=True)
class PortfolioState:
    """Point-in-time portfolio facts; re-read before every gate check."""

    open_positions_count: int = 0
    realized_loss_pct_today: float = 0.0


__all__ = [
    'ALL_SYMBOLS',
    'DEFAULT_RISK_PROFILE',
    'PortfolioState',
    'RiskProfile',
    'RiskTolerance',
    'normalize_allowed_symbols',
]
