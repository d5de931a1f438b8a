"""Likes, follows and comments API routes."""

from fastapi import APIRouter, Depends

from ...app import Application
from ...models import Profile
from ..deps import current_user_dependency
from ..schemas import (
    BeatResponse,
    CommentRequest,
    CommentResponse,
    LikeResponse,
    ProfileResponse,
    StatusResponse,
)


def create_social_router(app: Application) -> APIRouter:
    """Create social router."""
    router = APIRouter(prefix="/api", tags=["social"])
    current_user = current_user_dependency(app)

    @router.post("/beats/{beat_id}/like", response_model=LikeResponse)
    async def toggle_like(beat_id: str, user: Profile = Depends(current_user)) -> dict:
        liked = await app.social.toggle_like(user.id, beat_id)
        return {"liked": liked, "count": await app.social.like_count(beat_id)}

    @router.get("/me/likes", response_model=list[BeatResponse])
    async def liked_beats(user: Profile = Depends(current_user)):
        return await app.social.liked_beats(user.id)

    @router.get("/beats/{beat_id}/comments", response_model=list[CommentResponse])
    async def list_comments(beat_id: str):
        return await app.social.list_comments(beat_id)

    @router.post("/beats/{beat_id}/comments", response_model=CommentResponse, status_code=201)
    async def add_comment(
        beat_id: str, request: CommentRequest, user: Profile = Depends(current_user)
    ):
        return await app.social.add_comment(user.id, beat_id, request.text)

    @router.post("/users/{user_id}/follow", response_model=StatusResponse)
    async def follow(user_id: str, user: Profile = Depends(current_user)) -> dict:
        await app.social.follow(user.id, user_id)
        return {"status": "ok"}

    @router.delete("/users/{user_id}/follow", response_model=StatusResponse)
    async def unfollow(user_id: str, user: Profile = Depends(current_user)) -> dict:
        await app.social.unfollow(user.id, user_id)
        return {"status": "ok"}

    @router.get("/users/{user_id}/followers", response_model=list[ProfileResponse])
    async def followers(user_id: str):
        return await app.social.followers(user_id)

    @router.get("/users/{user_id}/following", response_model=list[ProfileResponse])
    async def following(user_id: str):
        return await app.social.following(user_id)

    return router
