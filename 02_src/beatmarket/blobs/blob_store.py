"""Filesystem blob storage with public URLs."""

import asyncio
import re
import shutil
from pathlib import Path, PurePosixPath
from typing import Protocol
from urllib.parse import quote, unquote

from ..config import BUCKETS, public_base_url, resolve_blob_dir
from ..errors import NotFound, ValidationFailed
from ..logging_config import get_logger

logger = get_logger(__name__)


def slugify(text: str) -> str:
    """Lowercase, dash-separated, ASCII-only form of a file stem."""
    text = text.strip().lower()
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"[^\w\-]+", "", text)
    text = re.sub(r"\-\-+", "-", text)
    return text.strip("-")


def safe_object_name(filename: str) -> str:
    """Slugify the stem of an upload's filename and keep its extension."""
    name = PurePosixPath(filename).name
    stem, dot, ext = name.rpartition(".")
    if not dot:
        stem, ext = name, ""
    slug = slugify(stem) or "file"
    return f"{slug}.{ext.lower()}" if ext else slug


class IBlobStore(Protocol):
    """Namespaced file storage."""

    async def upload(self, bucket: str, path: str, data: bytes) -> str:
        """Store bytes under bucket/path and return the public URL."""
        ...

    async def download(self, bucket: str, path: str) -> bytes:
        """Read stored bytes."""
        ...

    async def remove(self, bucket: str, paths: list[str]) -> None:
        """Delete objects; missing objects are ignored."""
        ...

    def public_url(self, bucket: str, path: str) -> str:
        """Public retrieval URL for an object."""
        ...

    def path_from_url(self, bucket: str, url: str) -> str | None:
        """Object path inside bucket for a public URL, or None."""
        ...


class LocalBlobStore:
    """Blob store backed by a directory per bucket."""

    def __init__(self, root: str | Path | None = None, base_url: str | None = None):
        self._root = resolve_blob_dir(root)
        self._base_url = (base_url or public_base_url()).rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, bucket: str, path: str) -> Path:
        if bucket not in BUCKETS:
            raise NotFound(f"Bucket {bucket} not found")
        parts = PurePosixPath(path).parts
        if not parts or ".." in parts or PurePosixPath(path).is_absolute():
            raise ValidationFailed(f"Invalid object path: {path}")
        bucket_root = (self._root / bucket).resolve()
        target = (bucket_root / Path(*parts)).resolve()
        if not target.is_relative_to(bucket_root):
            raise ValidationFailed(f"Invalid object path: {path}")
        return target

    async def upload(self, bucket: str, path: str, data: bytes) -> str:
        """Store bytes under bucket/path and return the public URL."""
        target = self._resolve(bucket, path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        await asyncio.to_thread(_write)
        logger.info("Uploaded %s/%s (%d bytes)", bucket, path, len(data))
        return self.public_url(bucket, path)

    async def download(self, bucket: str, path: str) -> bytes:
        """Read stored bytes."""
        target = self._resolve(bucket, path)
        if not target.is_file():
            raise NotFound(f"Object {bucket}/{path} not found")
        return await asyncio.to_thread(target.read_bytes)

    async def remove(self, bucket: str, paths: list[str]) -> None:
        """Delete objects; missing objects are ignored."""
        for path in paths:
            target = self._resolve(bucket, path)
            await asyncio.to_thread(target.unlink, True)

    def public_url(self, bucket: str, path: str) -> str:
        """Public retrieval URL for an object."""
        return f"{self._base_url}/storage/{bucket}/{quote(path)}"

    def path_from_url(self, bucket: str, url: str) -> str | None:
        """Object path inside bucket for a public URL, or None."""
        marker = f"/storage/{bucket}/"
        if marker not in url:
            return None
        return unquote(url.split(marker, 1)[1])

    def clear(self) -> None:
        """Delete every stored object."""
        if self._root.exists():
            shutil.rmtree(self._root)
