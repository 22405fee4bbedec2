"""
Scholar Registry: Abstract Blob Store Interface
================================================

What:  Abstract base class for image storage backends, plus the key/URL
       helpers every backend shares.
How:   Concrete stores (S3BlobStore, LocalBlobStore) implement upload(),
       delete() and health_check(). delete_best_effort() is implemented
       once here on top of delete().
Who:   ScholarService (uploads, superseded-image cleanup) and the health route.

Key Layout:
    uploads/<epoch-milliseconds>_<original-filename>

    The millisecond timestamp keeps two uploads of the same filename from
    colliding. A stored URL always ends with the last key segment, which is
    how key_from_url() recovers the key for deletion.
"""

import logging
import time
from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)

UPLOAD_PREFIX = "uploads/"


def make_upload_key(filename: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Build a fresh object key for an uploaded image.

    Only the final path component of the client filename is kept, so a name
    like "../x.png" or "C:\\pics\\x.png" cannot add directories to the key.

    >>> make_upload_key("photo.png", timestamp_ms=1700000000000)
    'uploads/1700000000000_photo.png'
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    name = PurePosixPath(filename.replace("\\", "/")).name or "upload"
    return f"{UPLOAD_PREFIX}{timestamp_ms}_{name}"


def key_from_url(url: str) -> str:
    """
    Recover the object key from a stored image URL.

    >>> key_from_url("https://bucket.s3.us-east-2.amazonaws.com/uploads/17_a%20b.png")
    'uploads/17_a b.png'
    """
    path = urlparse(url).path or url
    return UPLOAD_PREFIX + unquote(path.rstrip("/").rsplit("/", 1)[-1])


class BlobStore(ABC):
    """
    Contract for image storage.

    - upload() stores bytes under a key and returns a retrievable URL
    - delete() removes the object; deleting a missing key is not an error
    - Backend failures surface as BlobStorageError
    """

    @abstractmethod
    async def upload(self, key: str, content: bytes, content_type: Optional[str] = None) -> str:
        """
        Store `content` under `key`.

        Returns:
            The URL clients use to fetch the image.

        Raises:
            BlobStorageError: the backend rejected or failed the write.
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the object stored under `key`. Raises BlobStorageError on failure."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability probe used by GET /health."""
        ...

    async def delete_best_effort(self, url: str) -> bool:
        """
        Delete the object behind a stored image URL, never raising.

        Used when an update supersedes or removes an image: a failed delete
        is logged and the enclosing update carries on as if it succeeded.

        Returns:
            True if the delete call completed, False if it failed.
        """
        try:
            key = key_from_url(url)
            await self.delete(key)
            logger.info("Deleted superseded image: %s", key)
            return True
        except Exception as e:
            logger.warning("Error deleting old image %s: %s", url, str(e))
            return False
