"""Client-side like button state."""

from .optimistic import OptimisticUpdate
from .service import SocialService


class LikeToggle:
    """Liked flag and counter for one beat as shown to one user."""

    def __init__(self, social: SocialService, user_id: str, beat_id: str, liked: bool, count: int):
        self._social = social
        self._user_id = user_id
        self.beat_id = beat_id
        self.liked = liked
        self.count = count

    def _set(self, liked: bool) -> None:
        if liked != self.liked:
            self.count += 1 if liked else -1
            self.liked = liked

    async def toggle(self) -> bool:
        """Flip the like at once; reverted if the write fails."""
        target = not self.liked
        write = self._social.like if target else self._social.unlike
        update = OptimisticUpdate(
            apply=lambda: self._set(target),
            compensate=lambda: self._set(not target),
        )
        await update.run(lambda: write(self._user_id, self.beat_id))
        return self.liked
