"""Playback queue state with change listeners."""

from dataclasses import dataclass, field, replace
from typing import Callable

from ..models import Beat


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Immutable view of the player."""

    current: Beat | None = None
    queue: tuple[Beat, ...] = field(default_factory=tuple)
    index: int = -1
    is_playing: bool = False
    volume: float = 0.8


PlayerListener = Callable[[PlaybackSnapshot], None]


class PlayerState:
    """Queue and transport state of the global player."""

    def __init__(self):
        self._snapshot = PlaybackSnapshot()
        self._listeners: list[PlayerListener] = []

    @property
    def snapshot(self) -> PlaybackSnapshot:
        return self._snapshot

    def subscribe(self, listener: PlayerListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes) -> None:
        self._snapshot = replace(self._snapshot, **changes)
        for listener in list(self._listeners):
            listener(self._snapshot)

    def play(self, track: Beat, queue: list[Beat] | None = None) -> None:
        """Play a track; the queue is replaced, or becomes just this track."""
        new_queue = tuple(queue) if queue else (track,)
        index = next((i for i, t in enumerate(new_queue) if t.id == track.id), 0)
        self._set(current=track, queue=new_queue, index=index, is_playing=True)

    def next(self) -> None:
        queue, index = self._snapshot.queue, self._snapshot.index
        if index < len(queue) - 1:
            self._set(current=queue[index + 1], index=index + 1, is_playing=True)

    def previous(self) -> None:
        queue, index = self._snapshot.queue, self._snapshot.index
        if index > 0:
            self._set(current=queue[index - 1], index=index - 1, is_playing=True)

    def pause(self) -> None:
        self._set(is_playing=False)

    def resume(self) -> None:
        self._set(is_playing=True)

    def toggle(self) -> None:
        self._set(is_playing=not self._snapshot.is_playing)

    def set_volume(self, volume: float) -> None:
        """Set volume, clamped to [0, 1]."""
        self._set(volume=min(1.0, max(0.0, volume)))

    def reset(self) -> None:
        """Drop queue and stop (on sign-out)."""
        self._set(current=None, queue=(), index=-1, is_playing=False)
