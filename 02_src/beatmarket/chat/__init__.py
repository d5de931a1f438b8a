"""Chat module."""

from .resolver import ConversationResolver, IConversationStore
from .service import NO_MESSAGES, ChatService, ConversationView
from .thread import MessageThread

__all__ = [
    "ConversationResolver",
    "IConversationStore",
    "ChatService",
    "ConversationView",
    "NO_MESSAGES",
    "MessageThread",
]
