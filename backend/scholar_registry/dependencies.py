"""
FastAPI dependencies resolving the objects the lifespan put on `app.state`.

Route handlers never import a module-level store handle; they ask for one
of these, which keeps the wiring overridable from tests via
`app.dependency_overrides` or by assigning `app.state` directly.
"""

from fastapi import Request

from scholar_registry.blobs.base import BlobStore
from scholar_registry.database import Database
from scholar_registry.services.scholar_service import ScholarService
from scholar_registry.services.sponsor_service import SponsorService, sponsor_service


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def get_scholar_service(request: Request) -> ScholarService:
    return request.app.state.scholar_service


def get_sponsor_service() -> SponsorService:
    return sponsor_service
