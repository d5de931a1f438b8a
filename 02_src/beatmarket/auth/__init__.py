"""Authentication module."""

from .identity import IdentityService, IIdentityService, hash_password, verify_password
from .session import AuthState, SessionContext

__all__ = [
    "IdentityService",
    "IIdentityService",
    "hash_password",
    "verify_password",
    "AuthState",
    "SessionContext",
]
