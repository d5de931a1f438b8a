"""Player module."""

from .state import PlaybackSnapshot, PlayerState

__all__ = ["PlaybackSnapshot", "PlayerState"]
