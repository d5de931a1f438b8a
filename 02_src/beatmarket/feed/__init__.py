"""Change feed module."""

from .change_feed import ChangeFeed, IChangeFeed, Subscription

__all__ = ["ChangeFeed", "IChangeFeed", "Subscription"]
