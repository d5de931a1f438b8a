"""Cart and mock checkout."""

import logging
import time
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from decimal import Decimal

from ..errors import Conflict, NotFound, ValidationFailed
from ..feed import IChangeFeed
from ..logging_config import get_logger, log_event
from ..models import CartItem, ChangeType, LicenseTier, Purchase
from ..storage import Storage
from .licensing import availability, ensure_purchasable, price_for

logger = get_logger(__name__)


class CartService:
    """A buyer's cart and checkout into purchases."""

    def __init__(self, storage: Storage, feed: IChangeFeed):
        self._storage = storage
        self._feed = feed

    async def add_to_cart(
        self, user_id: str, beat_id: str, tier: LicenseTier | str = LicenseTier.MP3_LEASE
    ) -> CartItem:
        """Put a beat in the cart under a license tier."""
        try:
            tier = LicenseTier(tier)
        except ValueError:
            raise ValidationFailed(f"Unknown license type: {tier}") from None

        beat = await self._storage.get_beat(beat_id)
        if not beat or not beat.is_visible:
            raise NotFound(f"Beat {beat_id} not found")

        ensure_purchasable(beat, user_id, availability(await self._storage.sale_tiers(beat_id)))

        if await self._storage.get_cart_item(user_id, beat_id):
            raise Conflict("This beat is already in your cart")

        item = CartItem(
            id=str(uuid.uuid4()),
            user_id=user_id,
            beat_id=beat_id,
            license_type=tier,
            price=price_for(beat, tier),
            currency=beat.currency,
            created_at=datetime.now(timezone.utc),
        )
        try:
            await self._storage.add_cart_item(item)
        except Conflict as e:
            raise Conflict("This beat is already in your cart") from e
        return item

    async def remove_from_cart(self, user_id: str, item_id: str) -> None:
        if not await self._storage.remove_cart_item(item_id, user_id):
            raise NotFound(f"Cart item {item_id} not found")

    async def list_cart(self, user_id: str) -> list[CartItem]:
        return await self._storage.list_cart(user_id)

    async def cart_total(self, user_id: str) -> Decimal:
        return sum((item.price for item in await self.list_cart(user_id)), Decimal("0.00"))

    async def checkout(self, user_id: str) -> list[Purchase]:
        """
        Turn every cart row into a purchase and empty the cart.

        Exclusivity is checked up front for a clear error and again by the
        store inside the write transaction.
        """
        items = await self._storage.list_cart(user_id)
        if not items:
            raise ValidationFailed("Your cart is empty")

        seller_ids: dict[str, str] = {}
        for item in items:
            beat = await self._storage.get_beat(item.beat_id)
            if not beat:
                raise NotFound(f"Beat {item.beat_id} is no longer available")
            ensure_purchasable(
                beat, user_id, availability(await self._storage.sale_tiers(beat.id))
            )
            seller_ids[beat.id] = beat.producer_id

        now = datetime.now(timezone.utc)
        transaction_id = f"TXID_{int(time.time() * 1000)}"
        purchases = [
            Purchase(
                id=str(uuid.uuid4()),
                user_id=user_id,
                beat_id=item.beat_id,
                price_paid=item.price,
                currency=item.currency,
                license_type=item.license_type,
                transaction_id=transaction_id,
                created_at=now,
            )
            for item in items
        ]
        await self._storage.record_sales(purchases, seller_ids)

        for purchase in purchases:
            await self._feed.emit("purchases", ChangeType.INSERT, asdict(purchase))
        log_event(
            logger,
            logging.INFO,
            "Checkout completed",
            transaction_id=transaction_id,
            user_id=user_id,
            items=len(purchases),
            total=sum((p.price_paid for p in purchases), Decimal("0.00")),
        )
        return purchases
