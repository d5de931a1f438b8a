"""Core data models for the marketplace."""

from .profiles import Follow, Profile, Session
from .catalog import (
    Availability,
    Beat,
    CartItem,
    Comment,
    Favorite,
    LicenseTier,
    Purchase,
)
from .ledger import EarningsSummary, Transaction, TransactionType
from .chat import ChatMessage, Conversation, InboxEntry
from .events import ChangeEvent, ChangeType

__all__ = [
    # Profiles
    "Profile",
    "Session",
    "Follow",
    # Catalog
    "Beat",
    "LicenseTier",
    "Availability",
    "CartItem",
    "Purchase",
    "Favorite",
    "Comment",
    # Ledger
    "Transaction",
    "TransactionType",
    "EarningsSummary",
    # Chat
    "Conversation",
    "ChatMessage",
    "InboxEntry",
    # Change feed
    "ChangeEvent",
    "ChangeType",
]
