"""
Scholar Registry: Local File System Blob Store
===============================================

What:  Development backend writing images under STORAGE_ROOT.
How:   Async file I/O via aiofiles; the returned URL points at the
       GET /files/{path} route, which serves the same directory.
When:  BLOB_BACKEND=local.

Directory Structure:
    storage/
    └── uploads/
        ├── 1700000000000_photo.png
        └── 1700000004211_portrait.jpg
"""

import logging
import os
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import aiofiles

from scholar_registry.blobs.base import BlobStore
from scholar_registry.config import Settings
from scholar_registry.exceptions import BlobStorageError

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """BlobStore that keeps objects as plain files under a root directory."""

    def __init__(self, storage_root: str, public_base_url: str = ""):
        self.storage_root = Path(storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")
        logger.info("LocalBlobStore initialized with storage_root=%s", self.storage_root)

    @classmethod
    def from_settings(cls, config: Settings) -> "LocalBlobStore":
        return cls(config.storage_root, config.public_base_url)

    def resolve(self, key: str) -> Path:
        """
        Map a key to a path inside the storage root.

        Raises:
            BlobStorageError if the key would escape the root (e.g. "../x").
        """
        path = (self.storage_root / key).resolve()
        try:
            path.relative_to(self.storage_root)
        except ValueError:
            raise BlobStorageError(
                message="Invalid image key",
                context={"key": key},
            )
        return path

    def url_for(self, key: str) -> str:
        return f"{self.public_base_url}/files/{quote(key)}"

    async def upload(self, key: str, content: bytes, content_type: Optional[str] = None) -> str:
        path = self.resolve(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", path, str(e))
            raise BlobStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"key": key, "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", key, len(content))
        return self.url_for(key)

    async def delete(self, key: str) -> None:
        path = self.resolve(key)
        try:
            if path.exists():
                os.remove(path)
            else:
                logger.debug("Delete: file already gone: %s", key)
        except OSError as e:
            raise BlobStorageError(
                message="Failed to delete image.",
                context={"key": key, "os_error": str(e)},
            )

    async def health_check(self) -> bool:
        return self.storage_root.is_dir() and os.access(self.storage_root, os.W_OK)
