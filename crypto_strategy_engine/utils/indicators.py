"""Indicator helpers."""

from __future__ import annotations

from itertools import accumulate
from typing import Iterable, List


def moving_average(values: Iterable[float], window: int) -> List[float]:
    """Simple moving average over a rolling window, one value per full window."""
    if window <= 0:
        raise ValueError('window must be positive')
    values = list(values)
    if len(values) < window:
        return []
    total = sum(values[:window])
    averages = [total / window]
    for leaving, entering in zip(values, values[window:]):
        total += entering - leaving
        averages.append(total / window)
    return averages


def exponential_moving_average(values: Iterable[float], window: int) -> List[float]:
    """EMA seeded with the first value, so the output is as long as the input."""
    if window <= 0:
        return []
    alpha = 2 / (window + 1)
    return list(accumulate(values, lambda previous, price: previous + (price - previous) * alpha))


def relative_strength_index(values: Iterable[float], period: int = 14) -> float | None:
    """Wilder's RSI of the last value, or None without enough history."""
    values = list(values)
    if period <= 0:
        raise ValueError('period must be positive')
    if len(values) <= period:
        return None
    changes = [current - previous for previous, current in zip(values, values[1:])]
    gains = [max(change, 0.0) for change in changes]
    losses = [max(-change, 0.0) for change in changes]
    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period
    if avg_loss == 0:
        return 100.0 if avg_gain > 0 else 50.0
    rs = avg_gain / avg_loss
    return 100 - 100 / (1 + rs)


__all__ = ['moving_average', 'exponential_moving_average', 'relative_strength_index']
