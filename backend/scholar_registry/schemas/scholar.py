"""
Scholar Registry: Pydantic Request/Response Schemas
====================================================

What:  Pydantic models defining the JSON contract consumed by the UI client.
How:   Route handlers declare these as response models; FastAPI serializes
       them by alias, so identifiers appear as `_id` and write
       acknowledgments use the camelCase keys the client reads
       (`insertedId`, `matchedCount`, `modifiedCount`).

Design Decision:
    Schemas are separate from the SQLAlchemy models so the wire format can
    keep the client's field names while the tables stay conventional.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


# A major/institution value as stored: one string or a list of strings
FlexibleText = Union[str, List[str]]


# ══════════════════════════════════════════════════════════════════════════
# Service Inputs
# ══════════════════════════════════════════════════════════════════════════


@dataclass
class ScholarFields:
    """
    The seven client-supplied scholar fields.

    Every attribute is optional. `None` means the form did not carry the
    field; an empty string means it carried an empty value. Both are "not
    provided" for updates, and both are stored as given on create.
    """

    name: Optional[str] = None
    email: Optional[str] = None
    ig_acc: Optional[str] = None
    about: Optional[str] = None
    sponsor: Optional[str] = None
    major: Optional[FlexibleText] = None
    institution: Optional[FlexibleText] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "ig_acc": self.ig_acc,
            "about": self.about,
            "sponsor": self.sponsor,
            "major": self.major,
            "institution": self.institution,
        }


@dataclass
class ImagePayload:
    """An uploaded image that passed the size check, ready for the blob store."""

    filename: str
    content: bytes
    content_type: Optional[str] = None
    size: int = field(init=False)

    def __post_init__(self) -> None:
        self.size = len(self.content)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ScholarResponse(BaseModel):
    """
    What:  Full representation of a scholar record.
    Who:   Returned by GET /record/ (as list items) and GET /record/{id}.
    """
    id: uuid.UUID = Field(serialization_alias="_id", description="Record identifier")
    name: Optional[str] = None
    email: Optional[str] = None
    ig_acc: Optional[str] = Field(default=None, description="Instagram handle")
    about: Optional[str] = Field(default=None, description="Short bio")
    sponsor: Optional[str] = None
    major: Optional[FlexibleText] = Field(default=None, description="Single value or list")
    institution: Optional[FlexibleText] = Field(default=None, description="Single value or list")
    image: Optional[str] = Field(default=None, description="Image URL, null when there is none")

    model_config = {"from_attributes": True}


class InsertResult(BaseModel):
    """Acknowledgment of POST /record/ (HTTP 201)."""
    acknowledged: bool = True
    inserted_id: uuid.UUID = Field(serialization_alias="insertedId")


class UpdateResult(BaseModel):
    """Acknowledgment of PATCH /record/{id} (HTTP 200)."""
    acknowledged: bool = True
    matched_count: int = Field(serialization_alias="matchedCount")
    modified_count: int = Field(serialization_alias="modifiedCount")


class DeleteResult(BaseModel):
    """Confirmation returned by DELETE /record/{id}."""
    message: str = "Record deleted successfully"


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for every non-2xx response.

    Fields:
        error: Machine-readable code (e.g., "invalid_identifier", "not_found")
        message: Human-readable description
        details: Optional extra context (client errors only)
        request_id: Correlation ID for finding this request in server logs

    Example:
        {
            "error": "no_updates",
            "message": "No updates provided",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    blob_store: str = Field(description="Blob store status: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
