"""Ledger data models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from .catalog import Beat, Purchase


class TransactionType(str, Enum):
    """Direction of a ledger entry."""

    SALE = "sale"
    WITHDRAWAL = "withdrawal"


@dataclass
class Transaction:
    """A ledger entry on a user's account."""

    id: str
    user_id: str
    amount: Decimal
    type: TransactionType
    status: str
    created_at: datetime


@dataclass
class EarningsSummary:
    """Producer dashboard figures."""

    total_earnings: Decimal
    total_sales: int
    balance: Decimal
    sales: list[Purchase] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    beats: list[Beat] = field(default_factory=list)
