"""ChangeFeed implementation for realtime row-change subscriptions."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol

from ..logging_config import get_logger
from ..models import ChangeEvent, ChangeType

logger = get_logger(__name__)

_CLOSED = object()


class Subscription:
    """
    Cancellable handle on a filtered stream of change events.

    Iterate with ``async for``; iteration ends once ``close()`` is called and
    the events queued before it have been drained.
    """

    def __init__(self, feed: "ChangeFeed", table: str, filters: Mapping[str, Any] | None):
        self._feed = feed
        self.table = table
        self.filters = dict(filters or {})
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def matches(self, event: ChangeEvent) -> bool:
        """Check table and equality filters against the event's record."""
        if event.table != self.table:
            return False
        return all(event.record.get(column) == value for column, value in self.filters.items())

    def _deliver(self, event: ChangeEvent) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def close(self) -> None:
        """Stop receiving events and end iteration."""
        if self._closed:
            return
        self._closed = True
        self._feed._remove(self)
        self._queue.put_nowait(_CLOSED)

    async def next_event(self, timeout: float | None = None) -> ChangeEvent:
        """Wait for the next event. Raises StopAsyncIteration once closed."""
        if timeout is None:
            return await self.__anext__()
        return await asyncio.wait_for(self.__anext__(), timeout)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> ChangeEvent:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class IChangeFeed(Protocol):
    """In-memory pub/sub of row changes."""

    def subscribe(self, table: str, filters: Mapping[str, Any] | None = None) -> Subscription:
        """Open a subscription on a table, optionally filtered by column equality."""
        ...

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every matching subscription."""
        ...

    async def emit(self, table: str, change: ChangeType, record: dict) -> None:
        """Build and publish an event for a row change."""
        ...


class ChangeFeed:
    """In-memory change feed."""

    def __init__(self):
        self._subscriptions: list[Subscription] = []

    def subscribe(self, table: str, filters: Mapping[str, Any] | None = None) -> Subscription:
        """Open a subscription on a table, optionally filtered by column equality."""
        subscription = Subscription(self, table, filters)
        self._subscriptions.append(subscription)
        logger.debug("Subscribed to %s with filters %s", table, subscription.filters)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every matching subscription."""
        delivered = 0
        for subscription in list(self._subscriptions):
            if subscription.matches(event):
                subscription._deliver(event)
                delivered += 1
        logger.debug("Published %s on %s to %d subscribers", event.type.value, event.table, delivered)

    async def emit(self, table: str, change: ChangeType, record: dict) -> None:
        """Build and publish an event for a row change."""
        await self.publish(
            ChangeEvent(
                table=table,
                type=change,
                record=record,
                timestamp=datetime.now(timezone.utc),
            )
        )

    def close_all(self) -> None:
        """Close every open subscription."""
        for subscription in list(self._subscriptions):
            subscription.close()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)
