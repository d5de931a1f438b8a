"""Dashboard visibility switch with optimistic update."""

from ..models import Beat
from ..social.optimistic import OptimisticUpdate
from .service import CatalogService


class VisibilityToggle:
    """Client-side visibility of one of the producer's beats."""

    def __init__(self, catalog: CatalogService, beat: Beat, owner_id: str):
        self._catalog = catalog
        self._owner_id = owner_id
        self.beat = beat

    @property
    def visible(self) -> bool:
        return self.beat.is_visible

    def _set(self, visible: bool) -> None:
        self.beat.is_visible = visible

    async def toggle(self) -> bool:
        """Flip visibility at once; restored if the write fails."""
        target = not self.beat.is_visible
        update = OptimisticUpdate(
            apply=lambda: self._set(target),
            compensate=lambda: self._set(not target),
        )
        await update.run(
            lambda: self._catalog.set_visibility(self.beat.id, self._owner_id, target)
        )
        return self.beat.is_visible
