"""Utility helpers."""

from .helpers import async_retry, chunked, clamp
from .indicators import (
    exponential_moving_average,
    moving_average,
    relative_strength_index,
)

__all__ = [
    'async_retry',
    'chunked',
    'clamp',
    'exponential_moving_average',
    'moving_average',
    'relative_strength_index',
]
