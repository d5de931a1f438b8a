"""Chat data models."""

from dataclasses import dataclass
from datetime import datetime

from .profiles import Profile


@dataclass
class Conversation:
    """Canonical thread between exactly two users."""

    id: str
    participant_1: str
    participant_2: str
    created_at: datetime
    updated_at: datetime
    last_message: str | None = None

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.participant_1, self.participant_2)

    def partner_of(self, user_id: str) -> str:
        """Return the other participant's id."""
        return self.participant_2 if self.participant_1 == user_id else self.participant_1


@dataclass
class ChatMessage:
    """A single message in a conversation."""

    id: str
    conversation_id: str
    sender_id: str
    text: str
    created_at: datetime


@dataclass
class InboxEntry:
    """One row of a user's inbox."""

    conversation_id: str
    partner: Profile | None
    last_message: str
    last_message_time: datetime
    is_my_message: bool
