"""Logging helpers."""

from __future__ import annotations

import logging
from typing import Iterable

_NOISY_LOGGERS = ('asyncio', 'sqlalchemy.engine', 'urllib3')


def configure_logging(
    level: str = 'INFO',
    *,
    include_timestamp: bool = True,
    quiet: Iterable[str] = _NOISY_LOGGERS,
) -> None:
    """Configure root logging handlers and keep chatty libraries at WARNING."""
    fmt = '%(asctime)s - %(name)s - %(levelname)s - %(message)s' if include_timestamp else '%(name)s - %(levelname)s - %(message)s'
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=fmt)
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ['configure_logging']
