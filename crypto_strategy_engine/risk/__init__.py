"""Risk management tools."""

from .portfolio_ledger import LedgerEntry, PortfolioLedger
from .profile import ALL_SYMBOLS, DEFAULT_RISK_PROFILE, PortfolioState, RiskProfile, RiskTolerance
from .risk_gate import RiskGate, RiskGateResult, RiskViolation

__all__ = [
    'ALL_SYMBOLS',
    'DEFAULT_RISK_PROFILE',
    'LedgerEntry',
    'PortfolioLedger',
    'PortfolioState',
    'RiskGate',
    'RiskGateResult',
    'RiskProfile',
    'RiskTolerance',
    'RiskViolation',
]
