"""Auth API routes."""

from fastapi import APIRouter, Depends, Security
from fastapi.security import HTTPAuthorizationCredentials

from ...app import Application
from ...models import Profile
from ..deps import bearer_scheme, current_user_dependency
from ..schemas import (
    ProfileResponse,
    ProfileUpdateRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    StatusResponse,
)


def create_auth_router(app: Application) -> APIRouter:
    """Create auth router."""
    router = APIRouter(prefix="/api/auth", tags=["auth"])
    current_user = current_user_dependency(app)

    @router.post("/signup", response_model=SessionResponse, status_code=201)
    async def sign_up(request: SignUpRequest):
        """Create an account and return a session."""
        return await app.identity.sign_up(request.email, request.password, request.username)

    @router.post("/login", response_model=SessionResponse)
    async def sign_in(request: SignInRequest):
        return await app.identity.sign_in(request.email, request.password)

    @router.post("/logout", response_model=StatusResponse)
    async def sign_out(
        user: Profile = Depends(current_user),
        credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
    ) -> dict:
        await app.identity.sign_out(credentials.credentials)
        return {"status": "ok"}

    @router.get("/me", response_model=ProfileResponse)
    async def me(user: Profile = Depends(current_user)):
        return user

    @router.patch("/me", response_model=ProfileResponse)
    async def update_me(request: ProfileUpdateRequest, user: Profile = Depends(current_user)):
        await app.storage.update_profile(user.id, avatar_url=request.avatar_url, bio=request.bio)
        return await app.storage.get_profile(user.id)

    return router
