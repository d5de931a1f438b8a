"""Beat marketplace core."""

from .app import Application, IApplication
from .auth import IdentityService, SessionContext
from .blobs import IBlobStore, LocalBlobStore
from .catalog import CartService, CatalogService
from .chat import ChatService, ConversationResolver, MessageThread
from .feed import ChangeFeed, IChangeFeed, Subscription
from .ledger import LedgerService, compute_balance, validate_withdrawal
from .models import (
    Availability,
    Beat,
    CartItem,
    ChangeEvent,
    ChangeType,
    ChatMessage,
    Comment,
    Conversation,
    EarningsSummary,
    Favorite,
    LicenseTier,
    Profile,
    Purchase,
    Transaction,
    TransactionType,
)
from .player import PlayerState
from .social import SocialService
from .storage import Storage

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "Profile",
    "Beat",
    "LicenseTier",
    "Availability",
    "CartItem",
    "Purchase",
    "Favorite",
    "Comment",
    "Transaction",
    "TransactionType",
    "EarningsSummary",
    "Conversation",
    "ChatMessage",
    "ChangeEvent",
    "ChangeType",
    # Components
    "Storage",
    "IChangeFeed",
    "ChangeFeed",
    "Subscription",
    "IBlobStore",
    "LocalBlobStore",
    "IdentityService",
    "SessionContext",
    "PlayerState",
    "CatalogService",
    "CartService",
    "LedgerService",
    "SocialService",
    "ChatService",
    "ConversationResolver",
    "MessageThread",
    # Ledger arithmetic
    "compute_balance",
    "validate_withdrawal",
]
