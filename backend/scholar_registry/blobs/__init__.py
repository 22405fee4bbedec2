# Blob storage package init
"""
Scholar Registry: Blob Storage
===============================

Store Inventory:
    - BlobStore (abstract): upload / delete / health_check / delete_best_effort
    - S3BlobStore: production backend (boto3)
    - LocalBlobStore: development backend (aiofiles, served from /files)

build_blob_store() picks the backend named by BLOB_BACKEND; the app
lifespan calls it once and keeps the result on app.state.blob_store.
"""

from typing import Optional

from scholar_registry.blobs.base import BlobStore, key_from_url, make_upload_key
from scholar_registry.blobs.local import LocalBlobStore
from scholar_registry.blobs.s3 import S3BlobStore
from scholar_registry.config import Settings, settings as default_settings

__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "S3BlobStore",
    "build_blob_store",
    "key_from_url",
    "make_upload_key",
]


def build_blob_store(config: Optional[Settings] = None) -> BlobStore:
    """Construct the configured blob store backend."""
    config = config or default_settings
    if config.blob_backend == "local":
        return LocalBlobStore.from_settings(config)
    return S3BlobStore.from_settings(config)
