"""Catalog and purchase data models."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class LicenseTier(str, Enum):
    """Purchase options for a beat."""

    MP3_LEASE = "MP3 Lease"
    WAV_LEASE = "WAV Lease"
    EXCLUSIVE = "Exclusive"

    @property
    def is_exclusive(self) -> bool:
        return self is LicenseTier.EXCLUSIVE


class Availability(str, Enum):
    """Sale state of a beat. EXCLUSIVE_SOLD is terminal."""

    AVAILABLE = "available"
    EXCLUSIVE_SOLD = "exclusive_sold"


@dataclass
class Beat:
    """A sellable instrumental."""

    id: str
    producer_id: str
    title: str
    price: Decimal  # MP3 lease
    price_wav: Decimal
    price_exclusive: Decimal
    created_at: datetime
    bpm: int | None = None
    key: str | None = None
    genre: str | None = None
    description: str | None = None
    currency: str = "USD"
    audio_url: str | None = None
    cover_url: str | None = None
    is_visible: bool = True


@dataclass
class CartItem:
    """A beat waiting in a buyer's cart under a chosen tier."""

    id: str
    user_id: str
    beat_id: str
    license_type: LicenseTier
    price: Decimal
    currency: str
    created_at: datetime


@dataclass
class Purchase:
    """A completed sale of a beat to a buyer."""

    id: str
    user_id: str  # buyer
    beat_id: str
    price_paid: Decimal
    currency: str
    license_type: LicenseTier
    transaction_id: str
    created_at: datetime
    beat_title: str | None = None


@dataclass
class Favorite:
    """A like on a beat."""

    id: str
    user_id: str
    beat_id: str
    created_at: datetime


@dataclass
class Comment:
    """A comment under a beat."""

    id: str
    beat_id: str
    user_id: str
    text: str
    created_at: datetime
