"""Signal aggregation and risk-gated strategy generation for crypto markets."""

from importlib import metadata

try:
    __version__ = metadata.version('crypto-strategy-engine')
except metadata.PackageNotFoundError:  # pragma: no cover
    __version__ = '0.1.0-dev'

__all__ = ['__version__']
