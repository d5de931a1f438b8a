"""User-related data models."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Profile:
    """Public profile of a marketplace user."""

    id: str
    username: str
    email: str
    created_at: datetime
    avatar_url: str | None = None
    bio: str | None = None
    is_producer: bool = False
    balance: Decimal = Decimal("0.00")  # cached copy, credited on sale and set on withdrawal


@dataclass
class Session:
    """An authenticated session issued by the identity service."""

    token: str
    user_id: str
    created_at: datetime


@dataclass
class Follow:
    """A follower -> following edge."""

    follower_id: str
    following_id: str
    created_at: datetime
