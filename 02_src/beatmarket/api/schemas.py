"""Request and response models of the HTTP API."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from ..models import Availability, LicenseTier, TransactionType


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Auth
class SignUpRequest(BaseModel):
    """Request model for sign-up."""

    email: str
    password: str
    username: str


class SignInRequest(BaseModel):
    """Request model for sign-in."""

    email: str
    password: str


class SessionResponse(_FromAttributes):
    token: str
    user_id: str


class StatusResponse(BaseModel):
    status: str


# Profiles
class ProfileResponse(_FromAttributes):
    """Public profile."""

    id: str
    username: str
    avatar_url: str | None = None
    bio: str | None = None
    is_producer: bool
    created_at: datetime


class ProfileUpdateRequest(BaseModel):
    avatar_url: str | None = None
    bio: str | None = None


# Beats
class BeatResponse(_FromAttributes):
    id: str
    producer_id: str
    title: str
    bpm: int | None = None
    key: str | None = None
    genre: str | None = None
    description: str | None = None
    price: Decimal
    price_wav: Decimal
    price_exclusive: Decimal
    currency: str
    audio_url: str | None = None
    cover_url: str | None = None
    is_visible: bool
    created_at: datetime


class ExploreResponse(_FromAttributes):
    beats: list[BeatResponse]
    profiles: list[ProfileResponse]


class CommentResponse(_FromAttributes):
    id: str
    beat_id: str
    user_id: str
    text: str
    created_at: datetime


class PurchaseViewResponse(_FromAttributes):
    availability: Availability
    is_owner: bool
    can_purchase: bool
    contact_producer: bool
    prices: dict[LicenseTier, Decimal]


class BeatDetailResponse(_FromAttributes):
    beat: BeatResponse
    producer: ProfileResponse | None
    purchase: PurchaseViewResponse
    owned: bool
    liked: bool
    like_count: int
    view_count: int
    comments: list[CommentResponse]


class VisibilityRequest(BaseModel):
    visible: bool


class ProducerPageResponse(_FromAttributes):
    profile: ProfileResponse
    selling: list[BeatResponse]
    sold_out: list[BeatResponse]
    followers: int
    following: int
    is_following: bool
    is_own: bool
    collection: list[BeatResponse]


# Cart
class AddToCartRequest(BaseModel):
    beat_id: str
    license_type: LicenseTier = LicenseTier.MP3_LEASE


class CartItemResponse(_FromAttributes):
    id: str
    beat_id: str
    license_type: LicenseTier
    price: Decimal
    currency: str
    created_at: datetime


class CartResponse(BaseModel):
    items: list[CartItemResponse]
    total: Decimal


class PurchaseResponse(_FromAttributes):
    id: str
    user_id: str
    beat_id: str
    price_paid: Decimal
    currency: str
    license_type: LicenseTier
    transaction_id: str
    created_at: datetime
    beat_title: str | None = None


# Dashboard
class TransactionResponse(_FromAttributes):
    id: str
    amount: Decimal
    type: TransactionType
    status: str
    created_at: datetime


class DashboardResponse(_FromAttributes):
    total_earnings: Decimal
    total_sales: int
    balance: Decimal
    sales: list[PurchaseResponse]
    transactions: list[TransactionResponse]
    beats: list[BeatResponse]


class WithdrawalRequest(BaseModel):
    amount: str = Field(description="Amount in USD, e.g. \"15.00\"")


class WithdrawalResponse(_FromAttributes):
    transaction: TransactionResponse
    balance: Decimal


# Social
class LikeResponse(BaseModel):
    liked: bool
    count: int


class CommentRequest(BaseModel):
    text: str


# Chat
class ConversationIdResponse(BaseModel):
    conversation_id: str


class MessageRequest(BaseModel):
    """Request model for sending a message."""

    text: str


class MessageResponse(_FromAttributes):
    id: str
    conversation_id: str
    sender_id: str
    text: str
    created_at: datetime


class ConversationResponse(_FromAttributes):
    id: str
    participant_1: str
    participant_2: str
    last_message: str | None = None
    created_at: datetime
    updated_at: datetime


class ConversationViewResponse(_FromAttributes):
    conversation: ConversationResponse
    partner: ProfileResponse | None
    messages: list[MessageResponse]


class InboxEntryResponse(_FromAttributes):
    conversation_id: str
    partner: ProfileResponse | None
    last_message: str
    last_message_time: datetime
    is_my_message: bool
