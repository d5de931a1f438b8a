"""Balance arithmetic and withdrawal validation."""

from decimal import Decimal, InvalidOperation as DecimalError
from typing import Iterable, Union

from ..config import MIN_WITHDRAWAL
from ..errors import BelowMinimum, InsufficientFunds, InvalidAmount

Amount = Union[Decimal, int, float, str]

_CENT = Decimal("0.01")


def parse_amount(value: Amount) -> Decimal:
    """Parse a money value to an exact Decimal. Raises InvalidAmount."""
    try:
        # str() first so 19.99 stays 19.99 rather than its binary expansion
        amount = Decimal(str(value).strip())
    except (DecimalError, ValueError):
        raise InvalidAmount() from None
    if not amount.is_finite():
        raise InvalidAmount()
    return amount


def to_amount(value: Amount) -> Decimal:
    """Parse a money value to a Decimal rounded to cents. Raises InvalidAmount."""
    return parse_amount(value).quantize(_CENT)


def compute_balance(sales: Iterable[Amount], withdrawals: Iterable[Amount]) -> Decimal:
    """Sum of sales minus sum of withdrawals, floored at zero."""
    total = sum((to_amount(s) for s in sales), Decimal("0")) - sum(
        (to_amount(w) for w in withdrawals), Decimal("0")
    )
    return max(Decimal("0.00"), total).quantize(_CENT)


def validate_withdrawal(
    amount: Amount, balance: Amount, minimum: Amount = MIN_WITHDRAWAL
) -> Decimal:
    """
    Check a withdrawal request against the balance.

    Returns:
        The balance after the withdrawal.

    Raises:
        InvalidAmount: amount is not a positive number of whole cents.
        BelowMinimum: amount is below ``minimum``.
        InsufficientFunds: amount exceeds ``balance``.
    """
    # Compared unrounded: 14.999 is below a 15.00 minimum
    requested = parse_amount(amount)
    available = to_amount(balance)
    floor = to_amount(minimum)

    if requested <= 0:
        raise InvalidAmount()
    if requested < floor:
        raise BelowMinimum(f"Minimum withdrawal is ${floor}")
    if requested != requested.quantize(_CENT):
        raise InvalidAmount("Amount cannot have fractions of a cent")
    if requested > available:
        raise InsufficientFunds()
    return available - requested
