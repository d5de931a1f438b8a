"""Ledger module."""

from .balance import compute_balance, parse_amount, to_amount, validate_withdrawal
from .service import LedgerService, WithdrawalReceipt

__all__ = [
    "compute_balance",
    "parse_amount",
    "to_amount",
    "validate_withdrawal",
    "LedgerService",
    "WithdrawalReceipt",
]
