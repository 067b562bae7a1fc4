"""Order execution layer."""

from .executor import ActivationReport, StrategyExecutor, build_order
from .order_manager import OrderManager, OrderRequest, OrderResult

__all__ = [
    'ActivationReport',
    'OrderManager',
    'OrderRequest',
    'OrderResult',
    'StrategyExecutor',
    'build_order',
]
