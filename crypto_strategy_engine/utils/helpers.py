"""Assorted helper functions."""

from __future__ import annotations

import asyncio
import functools
import logging
from itertools import islice
from typing import Any, Awaitable, Callable, Iterable, Iterator, List, Tuple, Type

logger = logging.getLogger(__name__)


def async_retry(
    retries: int = 3,
    delay: float = 0.5,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """Retry decorator for async callables with linear backoff."""

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as error:
                    attempt += 1
                    if attempt >= retries:
                        raise
                    logger.debug('Retrying %s after %s (attempt %d)', func.__name__, error, attempt)
                    await asyncio.sleep(delay * attempt)
        return wrapper

    return decorator


def chunked(items: Iterable[Any], size: int) -> Iterator[List[Any]]:
    """Yield consecutive lists of at most ``size`` items."""
    if size <= 0:
        raise ValueError('size must be positive')
    iterator = iter(items)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(value, upper))


__all__ = ['async_retry', 'chunked', 'clamp']
