"""License tiers, pricing and the sold-out state of a beat."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from ..config import DEFAULT_PRICE_EXCLUSIVE, DEFAULT_PRICE_MP3, DEFAULT_PRICE_WAV
from ..errors import ExclusiveSoldOut, InvalidOperation
from ..models import Availability, Beat, LicenseTier


def availability(sale_tiers: Iterable[LicenseTier]) -> Availability:
    """EXCLUSIVE_SOLD as soon as any sale is exclusive; leases never change state."""
    if any(LicenseTier(t).is_exclusive for t in sale_tiers):
        return Availability.EXCLUSIVE_SOLD
    return Availability.AVAILABLE


def price_for(beat: Beat, tier: LicenseTier) -> Decimal:
    """Price of a tier, falling back to the default when unset."""
    if tier is LicenseTier.EXCLUSIVE:
        return beat.price_exclusive or DEFAULT_PRICE_EXCLUSIVE
    if tier is LicenseTier.WAV_LEASE:
        return beat.price_wav or DEFAULT_PRICE_WAV
    return beat.price or DEFAULT_PRICE_MP3


def tier_prices(beat: Beat) -> dict[LicenseTier, Decimal]:
    return {tier: price_for(beat, tier) for tier in LicenseTier}


def ensure_purchasable(beat: Beat, buyer_id: str, state: Availability) -> None:
    """Reject buying your own beat or a beat already sold exclusively."""
    if beat.producer_id == buyer_id:
        raise InvalidOperation("You cannot buy your own beat.")
    if state is Availability.EXCLUSIVE_SOLD:
        raise ExclusiveSoldOut(beat.id)


@dataclass
class PurchaseView:
    """What a viewer may do with a beat."""

    availability: Availability
    is_owner: bool
    can_purchase: bool
    contact_producer: bool  # blocked buyers are sent to messaging instead
    prices: dict[LicenseTier, Decimal] = field(default_factory=dict)


def purchase_view(beat: Beat, viewer_id: str | None, state: Availability) -> PurchaseView:
    is_owner = viewer_id is not None and viewer_id == beat.producer_id
    sold = state is Availability.EXCLUSIVE_SOLD
    return PurchaseView(
        availability=state,
        is_owner=is_owner,
        can_purchase=not is_owner and not sold,
        contact_producer=not is_owner and sold,
        prices={} if sold else tier_prices(beat),
    )
