"""Social module."""

from .likes import LikeToggle
from .optimistic import OptimisticUpdate
from .service import SocialService

__all__ = ["LikeToggle", "OptimisticUpdate", "SocialService"]
