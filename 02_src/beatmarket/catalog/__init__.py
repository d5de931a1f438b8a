"""Catalog module."""

from .cart import CartService
from .licensing import (
    PurchaseView,
    availability,
    ensure_purchasable,
    price_for,
    purchase_view,
    tier_prices,
)
from .service import BeatDetail, CatalogService, ExploreResult, ProducerPage, Upload
from .visibility import VisibilityToggle

__all__ = [
    "CartService",
    "PurchaseView",
    "availability",
    "ensure_purchasable",
    "price_for",
    "purchase_view",
    "tier_prices",
    "BeatDetail",
    "CatalogService",
    "ExploreResult",
    "ProducerPage",
    "Upload",
    "VisibilityToggle",
]
