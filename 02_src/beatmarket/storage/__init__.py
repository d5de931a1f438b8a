"""Storage module."""

from .storage import Storage, WithdrawalCheck, from_cents, to_cents

__all__ = ["Storage", "WithdrawalCheck", "from_cents", "to_cents"]
