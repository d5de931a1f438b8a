"""
Domain errors - business rule violations.

Raised by storage and services, mapped to HTTP status codes by the API layer
(see api/errors.py).
"""


class MarketplaceError(Exception):
    """Base class for all marketplace domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidOperation(MarketplaceError):
    """The requested operation makes no sense for its arguments (e.g. messaging yourself)."""


class ValidationFailed(MarketplaceError):
    """Input failed validation."""


class InvalidAmount(ValidationFailed):
    """Amount is not a positive number."""

    def __init__(self, message: str = "Please enter a valid amount"):
        super().__init__(message)


class BelowMinimum(ValidationFailed):
    """Withdrawal amount is below the fixed minimum."""


class InsufficientFunds(ValidationFailed):
    """Withdrawal amount exceeds the available balance."""

    def __init__(self, message: str = "Insufficient balance"):
        super().__init__(message)


class Conflict(MarketplaceError):
    """A uniqueness constraint rejected a write."""


class ExclusiveSoldOut(Conflict):
    """The beat was already sold under an exclusive license."""

    def __init__(self, beat_id: str):
        super().__init__(f"Beat {beat_id} is sold out (Exclusive)")
        self.beat_id = beat_id


class StateInconsistency(MarketplaceError):
    """Store reported a conflict but the conflicting record cannot be found."""


class NotFound(MarketplaceError):
    """A requested entity does not exist."""

    def __init__(self, message: str = "The requested entity was not found."):
        super().__init__(message)


class AccessDenied(MarketplaceError):
    """The caller lacks permission for the resource."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class AuthenticationFailed(MarketplaceError):
    """Credentials or session token are invalid."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)
