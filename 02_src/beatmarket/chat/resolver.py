"""Conversation resolution: one canonical thread per unordered user pair."""

import uuid
from datetime import datetime, timezone
from typing import Protocol

from ..errors import Conflict, InvalidOperation, StateInconsistency
from ..logging_config import get_logger
from ..models import Conversation

logger = get_logger(__name__)


class IConversationStore(Protocol):
    """Store operations the resolver relies on."""

    async def find_conversation(self, user_a: str, user_b: str) -> Conversation | None:
        """Find the conversation of an unordered pair."""
        ...

    async def create_conversation(self, conversation: Conversation) -> None:
        """Insert a conversation; raise Conflict if the pair already has one."""
        ...


class ConversationResolver:
    """
    Finds or creates the conversation between two users.

    Creation is optimistic: the store's unique index over the unordered pair
    rejects a concurrent duplicate with Conflict, and the loser re-reads the
    winner's record.
    """

    def __init__(self, store: IConversationStore):
        self._store = store

    async def resolve(self, user_a: str, user_b: str) -> str:
        """Return the id of the conversation between user_a and user_b."""
        if user_a == user_b:
            raise InvalidOperation("You cannot message yourself.")

        existing = await self._store.find_conversation(user_a, user_b)
        if existing:
            return existing.id

        now = datetime.now(timezone.utc)
        conversation = Conversation(
            id=str(uuid.uuid4()),
            participant_1=user_a,
            participant_2=user_b,
            created_at=now,
            updated_at=now,
        )

        try:
            await self._store.create_conversation(conversation)
        except Conflict:
            logger.info("Conversation create raced for %s/%s, re-reading", user_a, user_b)
            winner = await self._store.find_conversation(user_a, user_b)
            if winner is None:
                raise StateInconsistency(
                    f"Conversation for {user_a}/{user_b} conflicted on create but was not found"
                )
            return winner.id

        logger.info("Created conversation %s", conversation.id)
        return conversation.id
