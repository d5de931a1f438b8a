"""Cart API routes."""

from fastapi import APIRouter, Depends

from ...app import Application
from ...models import Profile
from ..deps import current_user_dependency
from ..schemas import (
    AddToCartRequest,
    CartItemResponse,
    CartResponse,
    PurchaseResponse,
    StatusResponse,
)


def create_cart_router(app: Application) -> APIRouter:
    """Create cart router."""
    router = APIRouter(prefix="/api/cart", tags=["cart"])
    current_user = current_user_dependency(app)

    @router.get("", response_model=CartResponse)
    async def list_cart(user: Profile = Depends(current_user)) -> dict:
        items = await app.cart.list_cart(user.id)
        return {"items": items, "total": sum((i.price for i in items), 0)}

    @router.post("", response_model=CartItemResponse, status_code=201)
    async def add_to_cart(request: AddToCartRequest, user: Profile = Depends(current_user)):
        return await app.cart.add_to_cart(user.id, request.beat_id, request.license_type)

    @router.delete("/{item_id}", response_model=StatusResponse)
    async def remove_from_cart(item_id: str, user: Profile = Depends(current_user)) -> dict:
        await app.cart.remove_from_cart(user.id, item_id)
        return {"status": "ok"}

    @router.post("/checkout", response_model=list[PurchaseResponse])
    async def checkout(user: Profile = Depends(current_user)):
        return await app.cart.checkout(user.id)

    return router
