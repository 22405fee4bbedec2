"""
Scholar Registry: Record Route Handlers
========================================

What:  The /record JSON-over-HTTP contract consumed by the UI client.
How:   Handlers read path/form data, enforce the image size cap, delegate to
       ScholarService / SponsorService and return their results. Errors
       are raised as application exceptions and formatted by the global
       handlers in main.py.

Routes:
    GET    /record/                 → 200 list of scholars
    GET    /record/sponsors         → 200 list of sponsors
    GET    /record/sponsors/{id}    → 200 sponsor | 400 | 404
    GET    /record/{id}             → 200 scholar | 400 | 404
    POST   /record/                 → 201 insert acknowledgment
    PATCH  /record/{id}             → 200 update acknowledgment | 400 | 404
    DELETE /record/{id}             → 200 confirmation | 400 | 404

Route order matters: the /sponsors routes are declared before /{record_id},
otherwise "sponsors" would be captured as a record id.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from scholar_registry.config import settings
from scholar_registry.database import get_db_session
from scholar_registry.dependencies import get_scholar_service, get_sponsor_service
from scholar_registry.exceptions import ImageTooLargeError
from scholar_registry.schemas.scholar import (
    DeleteResult,
    ErrorResponse,
    FlexibleText,
    ImagePayload,
    InsertResult,
    ScholarFields,
    ScholarResponse,
    UpdateResult,
)
from scholar_registry.schemas.sponsor import SponsorResponse
from scholar_registry.services.scholar_service import ScholarService
from scholar_registry.services.sponsor_service import SponsorService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/record", tags=["Records"])

IMAGE_ACTION_REMOVE = "remove"


# ── Upload Handling ───────────────────────────────────────────────────────

def collapse_form_values(values: Optional[List[str]]) -> Optional[FlexibleText]:
    """
    Repeated form keys arrive as a list. One value is stored as a plain
    string, several as a list, none as None.
    """
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return values


async def read_image_upload(upload: Optional[UploadFile]) -> Optional[ImagePayload]:
    """
    Turn the optional `image` part into an ImagePayload.

    A part without a filename (an empty file input) counts as no image.

    Raises:
        ImageTooLargeError: the image exceeds MAX_IMAGE_SIZE
    """
    if upload is None or not upload.filename:
        return None

    limit = settings.max_image_size
    try:
        if upload.size is not None and upload.size > limit:
            raise ImageTooLargeError(size=upload.size, limit=limit)
        payload = ImagePayload(
            filename=upload.filename,
            content=await upload.read(),
            content_type=upload.content_type,
        )
    finally:
        await upload.close()

    # upload.size is unset when the client omits the part's length
    if payload.size > limit:
        raise ImageTooLargeError(size=payload.size, limit=limit)

    logger.info("Received image upload: filename=%s, size=%d bytes", payload.filename, payload.size)
    return payload


# ── Scholars ──────────────────────────────────────────────────────────────

@router.get(
    "/",
    response_model=List[ScholarResponse],
    responses={500: {"model": ErrorResponse}},
    summary="List all scholar records",
)
async def list_records(
    db: AsyncSession = Depends(get_db_session),
    service: ScholarService = Depends(get_scholar_service),
) -> List[ScholarResponse]:
    return await service.list_scholars(db)


# ── Sponsors (must precede /{record_id}) ──────────────────────────────────

@router.get(
    "/sponsors",
    response_model=List[SponsorResponse],
    responses={500: {"model": ErrorResponse}},
    summary="List all sponsors",
)
async def list_sponsors(
    db: AsyncSession = Depends(get_db_session),
    service: SponsorService = Depends(get_sponsor_service),
) -> List[SponsorResponse]:
    return await service.list_sponsors(db)


@router.get(
    "/sponsors/{sponsor_id}",
    response_model=SponsorResponse,
    responses={
        400: {"description": "Malformed sponsor id", "model": ErrorResponse},
        404: {"description": "Sponsor not found", "model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Get a sponsor by ID",
)
async def get_sponsor(
    sponsor_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: SponsorService = Depends(get_sponsor_service),
) -> SponsorResponse:
    return await service.get_sponsor(db, sponsor_id)


# ── Single Scholar ────────────────────────────────────────────────────────

@router.get(
    "/{record_id}",
    response_model=ScholarResponse,
    responses={
        400: {"description": "Malformed record id", "model": ErrorResponse},
        404: {"description": "Record not found", "model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Get a scholar record by ID",
)
async def get_record(
    record_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ScholarService = Depends(get_scholar_service),
) -> ScholarResponse:
    # record_id is a plain str so malformed ids reach the service and
    # produce 400 (a UUID annotation would make FastAPI answer 422)
    return await service.get_scholar(db, record_id)


@router.post(
    "/",
    status_code=201,
    response_model=InsertResult,
    responses={
        413: {"description": "Image larger than the upload limit", "model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Create a scholar record (optional image upload)",
    description=(
        "Multipart form with name, email, ig_acc, about, sponsor, major, "
        "institution and an optional `image` file. No field is required."
    ),
)
async def create_record(
    name: Optional[str] = Form(default=None),
    email: Optional[str] = Form(default=None),
    ig_acc: Optional[str] = Form(default=None),
    about: Optional[str] = Form(default=None),
    sponsor: Optional[str] = Form(default=None),
    major: Optional[List[str]] = Form(default=None),
    institution: Optional[List[str]] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
    db: AsyncSession = Depends(get_db_session),
    service: ScholarService = Depends(get_scholar_service),
) -> InsertResult:
    payload = await read_image_upload(image)
    fields = ScholarFields(
        name=name,
        email=email,
        ig_acc=ig_acc,
        about=about,
        sponsor=sponsor,
        major=collapse_form_values(major),
        institution=collapse_form_values(institution),
    )
    return await service.create_scholar(db, fields, image=payload)


@router.patch(
    "/{record_id}",
    response_model=UpdateResult,
    responses={
        400: {"description": "Malformed id or no updates provided", "model": ErrorResponse},
        404: {"description": "Record not found", "model": ErrorResponse},
        413: {"description": "Image larger than the upload limit", "model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Partially update a scholar record",
    description=(
        "Only non-empty fields are written. Send a new `image` file to replace "
        "the current image, or `imageAction=remove` to clear it."
    ),
)
async def update_record(
    record_id: str,
    name: Optional[str] = Form(default=None),
    email: Optional[str] = Form(default=None),
    ig_acc: Optional[str] = Form(default=None),
    about: Optional[str] = Form(default=None),
    sponsor: Optional[str] = Form(default=None),
    major: Optional[List[str]] = Form(default=None),
    institution: Optional[List[str]] = Form(default=None),
    image_action: Optional[str] = Form(default=None, alias="imageAction"),
    image: Optional[UploadFile] = File(default=None),
    db: AsyncSession = Depends(get_db_session),
    service: ScholarService = Depends(get_scholar_service),
) -> UpdateResult:
    payload = await read_image_upload(image)
    fields = ScholarFields(
        name=name,
        email=email,
        ig_acc=ig_acc,
        about=about,
        sponsor=sponsor,
        major=collapse_form_values(major),
        institution=collapse_form_values(institution),
    )
    return await service.update_scholar(
        db,
        record_id,
        fields,
        image=payload,
        remove_image=image_action == IMAGE_ACTION_REMOVE,
    )


@router.delete(
    "/{record_id}",
    response_model=DeleteResult,
    responses={
        400: {"description": "Malformed record id", "model": ErrorResponse},
        404: {"description": "Record not found", "model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Delete a scholar record",
)
async def delete_record(
    record_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ScholarService = Depends(get_scholar_service),
) -> DeleteResult:
    return await service.delete_scholar(db, record_id)
