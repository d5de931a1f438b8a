"""API routes."""

from . import auth, beats, cart, chat, dashboard, social

__all__ = ["auth", "beats", "cart", "chat", "dashboard", "social"]
