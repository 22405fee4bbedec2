"""
Scholar Registry: Local Image Serving
======================================

What:  GET /files/{path} serves images written by LocalBlobStore.
When:  Only meaningful with BLOB_BACKEND=local; with S3 the image URLs
       point at the bucket and this route answers 404.

Security:
    The requested path is resolved inside the storage root by
    LocalBlobStore.resolve(); anything escaping it (../../etc/passwd)
    is rejected with 400.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from scholar_registry.blobs.base import BlobStore
from scholar_registry.blobs.local import LocalBlobStore
from scholar_registry.dependencies import get_blob_store
from scholar_registry.exceptions import BlobStorageError, NotFoundError, ValidationError

router = APIRouter(tags=["Files"])


@router.get(
    "/files/{file_path:path}",
    summary="Serve an uploaded image (local blob backend)",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Path outside the storage root"},
        404: {"description": "File not found"},
    },
)
async def serve_file(
    file_path: str,
    blob_store: BlobStore = Depends(get_blob_store),
) -> FileResponse:
    if not isinstance(blob_store, LocalBlobStore):
        raise NotFoundError(resource="file", resource_id=file_path)

    try:
        full_path = blob_store.resolve(file_path)
    except BlobStorageError:
        raise ValidationError(message="Invalid file path", field="file_path")

    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=file_path)

    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
