"""
External collaborators consumed by the services: image storage, caller identity.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from bson import ObjectId
from combinators import lift as L
from kungfu import Result, Ok, Error

from storefront._errors import CatalogError
from storefront._types import new_id

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Principal
# ═══════════════════════════════════════════════════════════════════════════════


class Role(Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller. Token verification happens outside the core."""

    user_id: ObjectId
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


# ═══════════════════════════════════════════════════════════════════════════════
# Image Storage
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Upload:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class ImageStore(Protocol):
    async def put(self, data: bytes, folder: str) -> str:
        """Store bytes, return the public URL."""
        ...

    async def delete(self, url: str) -> bool:
        """Remove by URL. Returns True if something was deleted."""
        ...


class MemoryImageStore:
    """ImageStore keeping blobs in a dict. URLs are memory://<folder>/<id>."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}
        self._lock = asyncio.Lock()

    async def put(self, data: bytes, folder: str) -> str:
        url = f"memory://{folder}/{new_id()}"
        async with self._lock:
            self._blobs[url] = data
        return url

    async def delete(self, url: str) -> bool:
        async with self._lock:
            return self._blobs.pop(url, None) is not None

    def __contains__(self, url: object) -> bool:
        return url in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)


async def upload_all(
    store: ImageStore,
    uploads: Sequence[Upload],
    folder: str,
) -> Result[list[str], CatalogError]:
    """
    Upload files in order. Any failure → INTERNAL, after the files
    already stored by this call are deleted again.
    """
    urls: list[str] = []
    for upload in uploads:
        match await L.catching_async(
            lambda u=upload: store.put(u.content, folder),
            on_error=lambda e: CatalogError.internal("Failed to upload images", e),
        ):
            case Ok(url):
                urls.append(url)
            case Error(e):
                logger.warning("Image upload to %s failed: %s", folder, e.cause)
                await delete_all(store, urls)
                return Error(e)
    return Ok(urls)


async def delete_all(store: ImageStore, urls: Sequence[str]) -> int:
    """
    Best-effort removal of replaced or orphaned images.

    Returns the number deleted; failures are logged and skipped.
    """
    deleted = 0
    for url in urls:
        match await L.catching_async(lambda u=url: store.delete(u), on_error=str):
            case Ok(True):
                deleted += 1
            case Ok(_):
                pass
            case Error(reason):
                logger.warning("Failed to delete image %s: %s", url, reason)
    return deleted


__all__ = (
    "Role",
    "Principal",
    "Upload",
    "ImageStore",
    "MemoryImageStore",
    "upload_all",
    "delete_all",
)
