"""Blob storage module."""

from .blob_store import IBlobStore, LocalBlobStore, safe_object_name, slugify

__all__ = ["IBlobStore", "LocalBlobStore", "safe_object_name", "slugify"]
