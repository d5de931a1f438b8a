"""Optimistic state transitions paired with their compensation."""

from typing import Awaitable, Callable, Generic, TypeVar

from ..logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class OptimisticUpdate(Generic[T]):
    """
    A tentative local change and its inverse, run around a remote write.

    ``apply`` runs before the write; ``compensate`` runs if the write raises,
    after which the error propagates.
    """

    def __init__(self, apply: Callable[[], None], compensate: Callable[[], None]):
        self._apply = apply
        self._compensate = compensate

    async def run(self, write: Callable[[], Awaitable[T]]) -> T:
        self._apply()
        try:
            return await write()
        except Exception:
            logger.warning("Remote write failed, rolling back optimistic update")
            self._compensate()
            raise
