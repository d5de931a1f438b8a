"""Client-side message list kept in sync from the change feed."""

import bisect
from typing import Callable, Iterable

from ..feed import Subscription
from ..logging_config import get_logger
from ..models import ChangeEvent, ChangeType, ChatMessage

logger = get_logger(__name__)


def _sort_key(message: ChatMessage):
    return message.created_at


class MessageThread:
    """Ordered, de-duplicated messages of one conversation."""

    def __init__(self, conversation_id: str, messages: Iterable[ChatMessage] = ()):
        self.conversation_id = conversation_id
        self._messages: list[ChatMessage] = []
        self._ids: set[str] = set()
        for message in messages:
            self.apply(message)

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def apply(self, message: ChatMessage) -> bool:
        """Add a message unless already present. Returns whether it was added."""
        if message.conversation_id != self.conversation_id:
            return False
        if message.id in self._ids:
            logger.debug("Duplicate message %s blocked", message.id)
            return False

        self._ids.add(message.id)
        keys = [_sort_key(m) for m in self._messages]
        # Equal timestamps keep arrival order
        self._messages.insert(bisect.bisect_right(keys, _sort_key(message)), message)
        return True

    def apply_event(self, event: ChangeEvent) -> ChatMessage | None:
        """Apply a messages INSERT event; returns the message if it was new."""
        if event.table != "messages" or event.type is not ChangeType.INSERT:
            return None
        message = ChatMessage(**event.record)
        return message if self.apply(message) else None

    async def follow(
        self,
        subscription: Subscription,
        on_message: Callable[[ChatMessage], None] | None = None,
    ) -> None:
        """Consume the subscription until it is closed."""
        async for event in subscription:
            message = self.apply_event(event)
            if message and on_message:
                on_message(message)
