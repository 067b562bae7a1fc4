"""Logging setup and read-only views for the dashboard."""

from .logger import configure_logging
from .views import ROI_DISCLAIMER, gate_view, signal_view, strategy_view

__all__ = ['ROI_DISCLAIMER', 'configure_logging', 'gate_view', 'signal_view', 'strategy_view']
