"""Catalog API routes."""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from ...app import Application
from ...catalog import Upload
from ...models import Profile
from ..deps import current_user_dependency, optional_user_dependency
from ..schemas import (
    BeatDetailResponse,
    BeatResponse,
    ExploreResponse,
    ProducerPageResponse,
    ProfileResponse,
    StatusResponse,
    VisibilityRequest,
)


async def _read_upload(file: UploadFile | None) -> Upload | None:
    if file is None:
        return None
    return Upload(filename=file.filename or "upload", data=await file.read())


def create_beats_router(app: Application) -> APIRouter:
    """Create catalog router."""
    router = APIRouter(prefix="/api", tags=["beats"])
    current_user = current_user_dependency(app)
    optional_user = optional_user_dependency(app)

    @router.get("/beats", response_model=ExploreResponse)
    async def explore(
        search: str | None = Query(None, description="Title / producer search"),
        genre: str | None = Query(None),
        min_bpm: int | None = Query(None, ge=0),
        max_bpm: int | None = Query(None, ge=0),
        max_price: str | None = Query(None, description="Max MP3 lease price"),
        limit: int = Query(100, ge=1, le=500),
    ):
        """Browse visible beats."""
        return await app.catalog.explore(
            search=search,
            genre=genre,
            min_bpm=min_bpm,
            max_bpm=max_bpm,
            max_price=max_price,
            limit=limit,
        )

    @router.post("/beats", response_model=BeatResponse, status_code=201)
    async def upload_beat(
        title: str = Form(...),
        audio: UploadFile = File(...),
        cover: UploadFile | None = File(None),
        bpm: int | None = Form(None),
        key: str | None = Form(None),
        genre: str | None = Form(None),
        description: str | None = Form(None),
        price: str | None = Form(None),
        price_wav: str | None = Form(None),
        price_exclusive: str | None = Form(None),
        user: Profile = Depends(current_user),
    ):
        return await app.catalog.upload_beat(
            producer_id=user.id,
            title=title,
            audio=await _read_upload(audio),
            cover=await _read_upload(cover),
            bpm=bpm,
            key=key,
            genre=genre,
            description=description,
            price=price,
            price_wav=price_wav,
            price_exclusive=price_exclusive,
        )

    @router.get("/beats/{beat_id}", response_model=BeatDetailResponse)
    async def beat_detail(beat_id: str, user: Profile | None = Depends(optional_user)):
        return await app.catalog.beat_detail(beat_id, user.id if user else None)

    @router.patch("/beats/{beat_id}/visibility", response_model=BeatResponse)
    async def set_visibility(
        beat_id: str, request: VisibilityRequest, user: Profile = Depends(current_user)
    ):
        return await app.catalog.set_visibility(beat_id, user.id, request.visible)

    @router.delete("/beats/{beat_id}", response_model=StatusResponse)
    async def delete_beat(beat_id: str, user: Profile = Depends(current_user)) -> dict:
        await app.catalog.delete_beat(beat_id, user.id)
        return {"status": "ok"}

    @router.get("/producers/top", response_model=list[ProfileResponse])
    async def top_producers(limit: int = Query(10, ge=1, le=50)):
        return await app.catalog.top_producers(limit)

    @router.get("/profiles/{ref}", response_model=ProducerPageResponse)
    async def producer_page(ref: str, user: Profile | None = Depends(optional_user)):
        """Profile by id or username."""
        return await app.catalog.producer_page(ref, user.id if user else None)

    return router
