"""Catalog service: uploads, browsing, beat pages and producer pages."""

import re
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from ..blobs import IBlobStore, safe_object_name
from ..config import (
    AUDIO_BUCKET,
    COVER_BUCKET,
    CURRENCY,
    DEFAULT_PRICE_EXCLUSIVE,
    DEFAULT_PRICE_MP3,
    DEFAULT_PRICE_WAV,
    MAX_AUDIO_BYTES,
    MAX_COVER_BYTES,
)
from ..errors import AccessDenied, NotFound, ValidationFailed
from ..feed import IChangeFeed
from ..ledger import to_amount
from ..logging_config import get_logger
from ..models import Availability, Beat, ChangeType, Comment, Profile
from ..storage import Storage
from .licensing import PurchaseView, availability, purchase_view

logger = get_logger(__name__)

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


@dataclass
class Upload:
    """A file handed in by the client."""

    filename: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class ExploreResult:
    beats: list[Beat]
    profiles: list[Profile] = field(default_factory=list)


@dataclass
class BeatDetail:
    """Everything the beat page shows to one viewer."""

    beat: Beat
    producer: Profile | None
    purchase: PurchaseView
    owned: bool
    liked: bool
    like_count: int
    view_count: int
    comments: list[Comment] = field(default_factory=list)


@dataclass
class ProducerPage:
    """A profile page with its beats split by sale state."""

    profile: Profile
    selling: list[Beat]
    sold_out: list[Beat]
    followers: int
    following: int
    is_following: bool
    is_own: bool
    collection: list[Beat] = field(default_factory=list)


def _price(value, default: Decimal) -> Decimal:
    if value is None or value == "":
        return default
    amount = to_amount(value)
    return amount if amount > 0 else default


class CatalogService:
    """Beats and producer pages."""

    def __init__(self, storage: Storage, blobs: IBlobStore, feed: IChangeFeed):
        self._storage = storage
        self._blobs = blobs
        self._feed = feed

    async def upload_beat(
        self,
        producer_id: str,
        title: str,
        audio: Upload | None,
        cover: Upload | None = None,
        bpm: int | None = None,
        key: str | None = None,
        genre: str | None = None,
        description: str | None = None,
        price=None,
        price_wav=None,
        price_exclusive=None,
    ) -> Beat:
        """Store the files and create the beat record."""
        title = (title or "").strip()
        if not title:
            raise ValidationFailed("Title is required")
        if audio is None or not audio.data:
            raise ValidationFailed("Audio file is required")
        if audio.size > MAX_AUDIO_BYTES:
            raise ValidationFailed("Audio file too large. Max 20MB allowed.")
        if cover is not None and cover.size > MAX_COVER_BYTES:
            raise ValidationFailed("Cover image too large. Max 2MB allowed.")

        stamp = int(time.time() * 1000)
        audio_path = f"{producer_id}/{stamp}_{safe_object_name(audio.filename)}"
        audio_url = await self._blobs.upload(AUDIO_BUCKET, audio_path, audio.data)

        cover_url = None
        cover_path = None
        if cover is not None and cover.data:
            cover_path = f"{producer_id}/{stamp}_{safe_object_name(cover.filename)}"
            cover_url = await self._blobs.upload(COVER_BUCKET, cover_path, cover.data)

        beat = Beat(
            id=str(uuid.uuid4()),
            producer_id=producer_id,
            title=title,
            bpm=bpm,
            key=key,
            genre=genre,
            description=description,
            price=_price(price, DEFAULT_PRICE_MP3),
            price_wav=_price(price_wav, DEFAULT_PRICE_WAV),
            price_exclusive=_price(price_exclusive, DEFAULT_PRICE_EXCLUSIVE),
            currency=CURRENCY,
            audio_url=audio_url,
            cover_url=cover_url,
            created_at=datetime.now(timezone.utc),
        )

        try:
            await self._storage.save_beat(beat)
        except Exception:
            await self._blobs.remove(AUDIO_BUCKET, [audio_path])
            if cover_path:
                await self._blobs.remove(COVER_BUCKET, [cover_path])
            raise

        await self._storage.update_profile(producer_id, is_producer=True)
        await self._feed.emit("beats", ChangeType.INSERT, asdict(beat))
        logger.info("Beat %s uploaded by %s", beat.id, producer_id)
        return beat

    async def explore(
        self,
        search: str | None = None,
        genre: str | None = None,
        min_bpm: int | None = None,
        max_bpm: int | None = None,
        max_price=None,
        limit: int = 100,
    ) -> ExploreResult:
        """Visible beats matching the filters, newest first, plus matching producers."""
        search = search.strip() if search else None
        beats = await self._storage.list_beats(
            search=search,
            genre=genre.strip() if genre else None,
            min_bpm=min_bpm,
            max_bpm=max_bpm,
            max_price=to_amount(max_price) if max_price not in (None, "") else None,
            limit=limit,
        )
        profiles = await self._storage.search_profiles(search, limit=4) if search else []
        return ExploreResult(beats=beats, profiles=profiles)

    async def top_producers(self, limit: int = 10) -> list[Profile]:
        return await self._storage.list_producers(limit=limit)

    async def get_beat(self, beat_id: str, viewer_id: str | None = None) -> Beat:
        """Load a beat; hidden beats exist only for their producer."""
        beat = await self._storage.get_beat(beat_id)
        if not beat or (not beat.is_visible and beat.producer_id != viewer_id):
            raise NotFound(f"Beat {beat_id} not found")
        return beat

    async def availability(self, beat_id: str) -> Availability:
        return availability(await self._storage.sale_tiers(beat_id))

    async def beat_detail(self, beat_id: str, viewer_id: str | None) -> BeatDetail:
        """Beat page for a viewer; logs a view for signed-in non-owners."""
        beat = await self.get_beat(beat_id, viewer_id)
        producer = await self._storage.get_profile(beat.producer_id)
        state = await self.availability(beat_id)

        owned = False
        liked = False
        if viewer_id:
            owned = await self._storage.has_purchased(viewer_id, beat_id)
            liked = await self._storage.is_favorite(viewer_id, beat_id)
            if viewer_id != beat.producer_id:
                await self._storage.record_view(
                    str(uuid.uuid4()), beat_id, viewer_id, datetime.now(timezone.utc)
                )

        return BeatDetail(
            beat=beat,
            producer=producer,
            purchase=purchase_view(beat, viewer_id, state),
            owned=owned,
            liked=liked,
            like_count=await self._storage.count_favorites(beat_id),
            view_count=await self._storage.count_views(beat_id),
            comments=await self._storage.list_comments(beat_id),
        )

    async def _owned_beat(self, beat_id: str, owner_id: str) -> Beat:
        beat = await self._storage.get_beat(beat_id)
        if not beat:
            raise NotFound(f"Beat {beat_id} not found")
        if beat.producer_id != owner_id:
            raise AccessDenied("Only the producer can manage this beat")
        return beat

    async def set_visibility(self, beat_id: str, owner_id: str, visible: bool) -> Beat:
        """Show or hide a beat from the marketplace."""
        beat = await self._owned_beat(beat_id, owner_id)
        await self._storage.set_beat_visibility(beat_id, visible)
        beat.is_visible = visible
        await self._feed.emit("beats", ChangeType.UPDATE, asdict(beat))
        return beat

    async def delete_beat(self, beat_id: str, owner_id: str) -> None:
        """
        Delete a beat with its related rows and files.

        Steps run one after another without rollback; a failed blob removal
        is logged and the delete continues.
        """
        beat = await self._owned_beat(beat_id, owner_id)

        await self._storage.delete_beat_relations(beat_id)

        for bucket, url in ((AUDIO_BUCKET, beat.audio_url), (COVER_BUCKET, beat.cover_url)):
            if not url:
                continue
            path = self._blobs.path_from_url(bucket, url)
            if not path:
                continue
            try:
                await self._blobs.remove(bucket, [path])
            except Exception:
                logger.exception("Failed to remove %s/%s", bucket, path)

        await self._storage.delete_beat(beat_id)
        await self._feed.emit("beats", ChangeType.DELETE, asdict(beat))
        logger.info("Beat %s deleted by %s", beat_id, owner_id)

    async def _find_profile(self, ref: str) -> Profile | None:
        if _UUID_RE.match(ref):
            return await self._storage.get_profile(ref)
        return await self._storage.get_profile_by_username(ref)

    async def producer_page(self, ref: str, viewer_id: str | None) -> ProducerPage:
        """Profile page by id or username."""
        profile = await self._find_profile(ref)
        if not profile:
            raise NotFound(f"Profile {ref} not found")

        is_own = viewer_id == profile.id
        beats = await self._storage.list_beats(
            producer_id=profile.id, visible_only=not is_own, limit=1000
        )
        sold_ids = await self._storage.exclusive_sold_beat_ids([b.id for b in beats])

        collection: list[Beat] = []
        if is_own:
            for purchase in await self._storage.list_purchases_by_buyer(profile.id):
                beat = await self._storage.get_beat(purchase.beat_id)
                if beat:
                    collection.append(beat)

        return ProducerPage(
            profile=profile,
            selling=[b for b in beats if b.id not in sold_ids],
            sold_out=[b for b in beats if b.id in sold_ids],
            followers=await self._storage.count_followers(profile.id),
            following=await self._storage.count_following(profile.id),
            is_following=(
                await self._storage.is_following(viewer_id, profile.id)
                if viewer_id and not is_own
                else False
            ),
            is_own=is_own,
            collection=collection,
        )
