"""Producer earnings dashboard and withdrawals."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from ..config import MIN_WITHDRAWAL
from ..logging_config import get_logger, log_event
from ..models import EarningsSummary, Transaction, TransactionType
from ..storage import Storage
from .balance import Amount, compute_balance, parse_amount, validate_withdrawal

logger = get_logger(__name__)


@dataclass
class WithdrawalReceipt:
    """Outcome of a successful withdrawal."""

    transaction: Transaction
    balance: Decimal


class LedgerService:
    """Balance and withdrawals of a seller."""

    def __init__(self, storage: Storage, minimum: Decimal = MIN_WITHDRAWAL):
        self._storage = storage
        self._minimum = minimum

    async def balance(self, user_id: str) -> Decimal:
        """Available balance derived from sales and withdrawals."""
        sales, withdrawals = await self._storage.ledger_amounts(user_id)
        return compute_balance(sales, withdrawals)

    async def earnings_summary(self, user_id: str) -> EarningsSummary:
        """Figures and lists shown on the producer dashboard."""
        beats = await self._storage.list_beats(producer_id=user_id, visible_only=False, limit=1000)
        sales = await self._storage.list_sales_by_seller(user_id)
        transactions = await self._storage.list_transactions(user_id)

        total_earnings = sum((s.price_paid for s in sales), Decimal("0.00"))
        withdrawn = [
            t.amount for t in transactions if t.type is TransactionType.WITHDRAWAL
        ]
        return EarningsSummary(
            total_earnings=total_earnings,
            total_sales=len(sales),
            balance=compute_balance([s.price_paid for s in sales], withdrawn),
            sales=sales,
            transactions=transactions,
            beats=beats,
        )

    async def withdraw(self, user_id: str, amount: Amount) -> WithdrawalReceipt:
        """
        Withdraw funds.

        The balance is recomputed and the debit written in a single storage
        transaction, so concurrent requests cannot overdraw.
        """
        exact = parse_amount(amount)
        requested = exact.quantize(Decimal("0.01"))

        def check(sales: list[Decimal], withdrawals: list[Decimal]) -> Decimal:
            return validate_withdrawal(
                exact, compute_balance(sales, withdrawals), self._minimum
            )

        transaction = Transaction(
            id=str(uuid.uuid4()),
            user_id=user_id,
            amount=requested,
            type=TransactionType.WITHDRAWAL,
            status="completed",
            created_at=datetime.now(timezone.utc),
        )
        new_balance = await self._storage.record_withdrawal(transaction, check)
        log_event(
            logger,
            logging.INFO,
            "Withdrawal completed",
            transaction_id=transaction.id,
            user_id=user_id,
            amount=requested,
            balance=new_balance,
        )
        return WithdrawalReceipt(transaction=transaction, balance=new_balance)
