"""
Scholar Registry: Scholar Service (Record Lifecycle)
=====================================================

What:  Create, read, partially update and delete scholar records, keeping
       the record's `image` URL in step with the blob store.
How:   Stateless apart from the injected BlobStore; each call receives the
       request's AsyncSession. Commit/rollback happen in the session
       dependency, so one request is one transaction.
Who:   Called by the /record route handlers.

Update Flow (PATCH /record/{id}):
    ┌──────────┐   ┌────────────┐   ┌──────────────────────┐   ┌─────────┐
    │ Parse id │──▶│ Fetch row  │──▶│ Stage fields + image │──▶│ UPDATE  │
    │ (400)    │   │ (404)      │   │ (400 if none staged) │   │ staged  │
    └──────────┘   └────────────┘   └──────────────────────┘   └─────────┘

    Image precedence while staging:
        new upload     → upload, stage new URL, best-effort delete old blob
        imageAction    → stage NULL, best-effort delete old blob
        neither        → image column is not touched

Consistency:
    The blob store and the database are not written atomically. A failed
    insert after an upload leaves the uploaded blob behind, and deleting a
    record never deletes its image.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from scholar_registry.blobs.base import BlobStore, make_upload_key
from scholar_registry.exceptions import (
    NoUpdatesProvidedError,
    NotFoundError,
    ScholarRegistryError,
    StoreError,
)
from scholar_registry.models.scholar import LIST_FIELDS, Scholar
from scholar_registry.schemas.scholar import (
    DeleteResult,
    ImagePayload,
    InsertResult,
    ScholarFields,
    ScholarResponse,
    UpdateResult,
)
from scholar_registry.services.identifiers import parse_identifier

logger = logging.getLogger(__name__)


class ScholarUpdate:
    """
    Accumulates the columns a partial update will write.

    Fields with falsy values (None, "", []) are skipped, which means an
    update can never blank a text field; only `image` can be cleared, via
    an explicit stage("image", None).
    """

    def __init__(self) -> None:
        self.values: Dict[str, Any] = {}
        self.has_updates = False

    def stage(self, field: str, value: Any) -> None:
        self.values[field] = value
        self.has_updates = True

    def stage_fields(self, fields: ScholarFields) -> None:
        for name, value in fields.as_dict().items():
            if not value:
                continue
            if name in LIST_FIELDS and not isinstance(value, list):
                value = [value]
            self.stage(name, value)

    def differs_from(self, scholar: Scholar) -> bool:
        """True if writing the staged values would change the stored row."""
        return any(getattr(scholar, name) != value for name, value in self.values.items())


class ScholarService:
    """
    Business logic for scholar records.

    Error Handling Strategy:
        Application exceptions (InvalidIdentifierError, NotFoundError,
        NoUpdatesProvidedError, BlobStorageError) propagate unchanged.
        Anything else raised while talking to the database is logged and
        wrapped in StoreError, which the API reports as a generic 500.
    """

    def __init__(self, blob_store: BlobStore):
        self.blob_store = blob_store

    async def _store_image(self, image: ImagePayload) -> str:
        key = make_upload_key(image.filename)
        return await self.blob_store.upload(key, image.content, image.content_type)

    async def _fetch(self, db: AsyncSession, scholar_id: uuid.UUID) -> Optional[Scholar]:
        result = await db.execute(select(Scholar).where(Scholar.id == scholar_id))
        return result.scalar_one_or_none()

    async def create_scholar(
        self,
        db: AsyncSession,
        fields: ScholarFields,
        image: Optional[ImagePayload] = None,
    ) -> InsertResult:
        """
        Insert a new record, uploading the image first when one is supplied.

        No field is required. `major`/`institution` are stored exactly as
        received (scalar or list).

        Raises:
            BlobStorageError: image upload failed (nothing inserted)
            StoreError: insert failed (an uploaded image is left orphaned)
        """
        try:
            image_url = None
            if image is not None:
                image_url = await self._store_image(image)

            scholar = Scholar(**fields.as_dict(), image=image_url)
            db.add(scholar)
            await db.flush()  # assigns the id
            logger.info("Scholar %s created (image=%s)", scholar.id, bool(image_url))

            return InsertResult(acknowledged=True, inserted_id=scholar.id)

        except ScholarRegistryError:
            raise
        except Exception as e:
            logger.error("Error adding record: %s", str(e), exc_info=True)
            raise StoreError(
                message="Error adding record",
                context={"original_error": type(e).__name__},
            )

    async def get_scholar(self, db: AsyncSession, raw_id: str) -> ScholarResponse:
        """
        Fetch one record.

        Raises:
            InvalidIdentifierError: malformed id (no query issued)
            NotFoundError: no record with this id
            StoreError: query failed
        """
        scholar_id = parse_identifier(raw_id)
        try:
            scholar = await self._fetch(db, scholar_id)
            if scholar is None:
                raise NotFoundError(resource="record", resource_id=raw_id)
            return ScholarResponse.model_validate(scholar)

        except ScholarRegistryError:
            raise
        except Exception as e:
            logger.error("Error retrieving record %s: %s", raw_id, str(e))
            raise StoreError(
                message="Error retrieving record",
                context={"scholar_id": raw_id, "original_error": type(e).__name__},
            )

    async def list_scholars(self, db: AsyncSession) -> List[ScholarResponse]:
        """Every record, unfiltered and unpaginated, in the store's native order."""
        try:
            result = await db.execute(select(Scholar))
            return [ScholarResponse.model_validate(s) for s in result.scalars().all()]
        except Exception as e:
            logger.error("Error retrieving records: %s", str(e), exc_info=True)
            raise StoreError(
                message="Error retrieving records",
                context={"original_error": type(e).__name__},
            )

    async def update_scholar(
        self,
        db: AsyncSession,
        raw_id: str,
        fields: ScholarFields,
        image: Optional[ImagePayload] = None,
        remove_image: bool = False,
    ) -> UpdateResult:
        """
        Merge the supplied fields into an existing record.

        Steps:
            1. Parse the id (InvalidIdentifierError before any query)
            2. Load the current row (NotFoundError if absent)
            3. Stage every truthy field; scalar major/institution become
               one-element lists
            4. Resolve the image (upload > remove > untouched); superseded
               blobs are deleted best-effort
            5. Nothing staged → NoUpdatesProvidedError, no write
            6. One UPDATE limited to the staged columns

        Args:
            db: Request session
            raw_id: Path identifier as received
            fields: Client-supplied fields (absent/empty ones are ignored)
            image: New image, already size-checked by the route
            remove_image: True when the client sent imageAction=remove;
                ignored when `image` is also present

        Returns:
            UpdateResult acknowledgment. matchedCount is the rows hit by the
            UPDATE; modifiedCount is 0 when every staged value already
            equals the stored one.
        """
        scholar_id = parse_identifier(raw_id)
        try:
            current = await self._fetch(db, scholar_id)
            if current is None:
                raise NotFoundError(resource="record", resource_id=raw_id)

            changes = ScholarUpdate()
            changes.stage_fields(fields)

            if image is not None:
                changes.stage("image", await self._store_image(image))
                if current.image:
                    await self.blob_store.delete_best_effort(current.image)
            elif remove_image:
                changes.stage("image", None)
                if current.image:
                    await self.blob_store.delete_best_effort(current.image)

            if not changes.has_updates:
                raise NoUpdatesProvidedError(context={"scholar_id": raw_id})

            # rowcount counts matched rows; "modified" means a value actually changed
            modified = changes.differs_from(current)
            result = await db.execute(
                update(Scholar).where(Scholar.id == scholar_id).values(**changes.values)
            )
            logger.info(
                "Scholar %s updated: %s",
                raw_id,
                ", ".join(sorted(changes.values)),
            )
            return UpdateResult(
                acknowledged=True,
                matched_count=result.rowcount,
                modified_count=result.rowcount if modified else 0,
            )

        except ScholarRegistryError:
            raise
        except Exception as e:
            logger.error("Error updating record %s: %s", raw_id, str(e), exc_info=True)
            raise StoreError(
                message="Error updating record",
                context={"scholar_id": raw_id, "original_error": type(e).__name__},
            )

    async def delete_scholar(self, db: AsyncSession, raw_id: str) -> DeleteResult:
        """
        Delete a record. The record's image blob is not deleted.

        Raises:
            InvalidIdentifierError: malformed id
            NotFoundError: no row matched
            StoreError: delete failed
        """
        scholar_id = parse_identifier(raw_id)
        try:
            result = await db.execute(delete(Scholar).where(Scholar.id == scholar_id))
            if result.rowcount == 0:
                raise NotFoundError(resource="record", resource_id=raw_id)
            logger.info("Scholar %s deleted", raw_id)
            return DeleteResult()

        except ScholarRegistryError:
            raise
        except Exception as e:
            logger.error("Error deleting record %s: %s", raw_id, str(e), exc_info=True)
            raise StoreError(
                message="Error deleting record",
                context={"scholar_id": raw_id, "original_error": type(e).__name__},
            )
