"""Chat service: conversations, messages and inbox."""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

from ..errors import AccessDenied, NotFound, ValidationFailed
from ..feed import IChangeFeed, Subscription
from ..logging_config import get_logger
from ..models import ChangeType, ChatMessage, Conversation, InboxEntry, Profile
from ..storage import Storage
from .resolver import ConversationResolver

logger = get_logger(__name__)

NO_MESSAGES = "No messages yet"


@dataclass
class ConversationView:
    """A conversation as opened by one of its participants."""

    conversation: Conversation
    partner: Profile | None
    messages: list[ChatMessage] = field(default_factory=list)


class ChatService:
    """Conversations between pairs of users."""

    def __init__(self, storage: Storage, feed: IChangeFeed):
        self._storage = storage
        self._feed = feed
        self._resolver = ConversationResolver(storage)

    async def resolve(self, user_id: str, target_id: str) -> str:
        """Find or create the conversation between user_id and target_id."""
        if user_id != target_id and not await self._storage.get_profile(target_id):
            raise NotFound(f"User {target_id} not found")
        return await self._resolver.resolve(user_id, target_id)

    async def _load_for(self, conversation_id: str, user_id: str) -> Conversation:
        conversation = await self._storage.get_conversation(conversation_id)
        if not conversation:
            raise NotFound(f"Conversation {conversation_id} not found")
        if not conversation.has_participant(user_id):
            raise AccessDenied("You are not part of this conversation.")
        return conversation

    async def open_conversation(self, conversation_id: str, user_id: str) -> ConversationView:
        """Load a conversation, its partner's profile and its messages."""
        conversation = await self._load_for(conversation_id, user_id)
        partner = await self._storage.get_profile(conversation.partner_of(user_id))
        messages = await self._storage.get_messages(conversation_id)
        return ConversationView(conversation=conversation, partner=partner, messages=messages)

    async def get_messages(
        self, conversation_id: str, user_id: str, after: datetime | None = None
    ) -> list[ChatMessage]:
        await self._load_for(conversation_id, user_id)
        return await self._storage.get_messages(conversation_id, after=after)

    async def send_message(self, conversation_id: str, sender_id: str, text: str) -> ChatMessage:
        """Append a message and publish it on the feed."""
        text = text.strip()
        if not text:
            raise ValidationFailed("Message text is required")
        await self._load_for(conversation_id, sender_id)

        message = ChatMessage(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            sender_id=sender_id,
            text=text,
            created_at=datetime.now(timezone.utc),
        )
        await self._storage.save_message(message)
        await self._feed.emit("messages", ChangeType.INSERT, asdict(message))
        return message

    async def subscribe(self, conversation_id: str, user_id: str) -> Subscription:
        """Open a realtime subscription on new messages of a conversation."""
        await self._load_for(conversation_id, user_id)
        return self._feed.subscribe("messages", {"conversation_id": conversation_id})

    async def inbox(self, user_id: str) -> list[InboxEntry]:
        """The user's conversations, most recent activity first, one per partner."""
        entries: list[InboxEntry] = []
        seen_partners: set[str] = set()

        for conversation in await self._storage.list_conversations(user_id):
            partner_id = conversation.partner_of(user_id)
            if partner_id in seen_partners:
                continue
            seen_partners.add(partner_id)

            partner = await self._storage.get_profile(partner_id)
            last = await self._storage.get_last_message(conversation.id)
            entries.append(
                InboxEntry(
                    conversation_id=conversation.id,
                    partner=partner,
                    last_message=(
                        last.text if last else conversation.last_message or NO_MESSAGES
                    ),
                    last_message_time=last.created_at if last else conversation.updated_at,
                    is_my_message=bool(last and last.sender_id == user_id),
                )
            )

        entries.sort(key=lambda e: e.last_message_time, reverse=True)
        return entries
