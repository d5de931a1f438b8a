"""Likes, follows and comments."""

import uuid
from datetime import datetime, timezone

from ..errors import Conflict, InvalidOperation, NotFound, ValidationFailed
from ..logging_config import get_logger
from ..models import Beat, Comment, Favorite, Profile
from ..storage import Storage

logger = get_logger(__name__)


class SocialService:
    """Interactions between users and beats."""

    def __init__(self, storage: Storage):
        self._storage = storage

    async def _require_beat(self, beat_id: str) -> Beat:
        beat = await self._storage.get_beat(beat_id)
        if not beat:
            raise NotFound(f"Beat {beat_id} not found")
        return beat

    async def _require_profile(self, user_id: str) -> Profile:
        profile = await self._storage.get_profile(user_id)
        if not profile:
            raise NotFound(f"User {user_id} not found")
        return profile

    # Likes
    async def like(self, user_id: str, beat_id: str) -> None:
        await self._require_beat(beat_id)
        try:
            await self._storage.add_favorite(
                Favorite(
                    id=str(uuid.uuid4()),
                    user_id=user_id,
                    beat_id=beat_id,
                    created_at=datetime.now(timezone.utc),
                )
            )
        except Conflict as e:
            raise Conflict("Already liked") from e

    async def unlike(self, user_id: str, beat_id: str) -> None:
        if not await self._storage.remove_favorite(user_id, beat_id):
            raise NotFound("Like not found")

    async def toggle_like(self, user_id: str, beat_id: str) -> bool:
        """Like or unlike; returns the new liked state."""
        if await self._storage.is_favorite(user_id, beat_id):
            await self.unlike(user_id, beat_id)
            return False
        await self.like(user_id, beat_id)
        return True

    async def is_liked(self, user_id: str, beat_id: str) -> bool:
        return await self._storage.is_favorite(user_id, beat_id)

    async def like_count(self, beat_id: str) -> int:
        return await self._storage.count_favorites(beat_id)

    async def liked_beats(self, user_id: str) -> list[Beat]:
        return await self._storage.list_favorite_beats(user_id)

    # Follows
    async def follow(self, follower_id: str, following_id: str) -> None:
        if follower_id == following_id:
            raise InvalidOperation("You cannot follow yourself.")
        await self._require_profile(following_id)
        try:
            await self._storage.add_follow(follower_id, following_id, datetime.now(timezone.utc))
        except Conflict as e:
            raise Conflict("Already following") from e

    async def unfollow(self, follower_id: str, following_id: str) -> None:
        if not await self._storage.remove_follow(follower_id, following_id):
            raise NotFound("Not following")

    async def followers(self, user_id: str) -> list[Profile]:
        await self._require_profile(user_id)
        return await self._storage.list_followers(user_id)

    async def following(self, user_id: str) -> list[Profile]:
        await self._require_profile(user_id)
        return await self._storage.list_following(user_id)

    # Comments
    async def add_comment(self, user_id: str, beat_id: str, text: str) -> Comment:
        text = text.strip()
        if not text:
            raise ValidationFailed("Comment text is required")
        await self._require_beat(beat_id)
        comment = Comment(
            id=str(uuid.uuid4()),
            beat_id=beat_id,
            user_id=user_id,
            text=text,
            created_at=datetime.now(timezone.utc),
        )
        await self._storage.add_comment(comment)
        return comment

    async def list_comments(self, beat_id: str) -> list[Comment]:
        return await self._storage.list_comments(beat_id)
