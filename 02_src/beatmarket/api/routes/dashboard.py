"""Producer dashboard API routes."""

from fastapi import APIRouter, Depends

from ...app import Application
from ...models import Profile
from ..deps import current_user_dependency
from ..schemas import DashboardResponse, WithdrawalRequest, WithdrawalResponse


def create_dashboard_router(app: Application) -> APIRouter:
    """Create dashboard router."""
    router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])
    current_user = current_user_dependency(app)

    @router.get("", response_model=DashboardResponse)
    async def dashboard(user: Profile = Depends(current_user)):
        """Earnings, balance, sales and transactions."""
        return await app.ledger.earnings_summary(user.id)

    @router.post("/withdrawals", response_model=WithdrawalResponse, status_code=201)
    async def withdraw(request: WithdrawalRequest, user: Profile = Depends(current_user)):
        return await app.ledger.withdraw(user.id, request.amount)

    return router
