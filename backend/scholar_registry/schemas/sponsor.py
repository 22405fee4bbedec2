"""Sponsor response schema."""

import uuid
from typing import Optional

from pydantic import BaseModel, Field


class SponsorResponse(BaseModel):
    """A sponsor as returned by GET /record/sponsors and GET /record/sponsors/{id}."""
    id: uuid.UUID = Field(serialization_alias="_id")
    name: str
    description: Optional[str] = None
    website: Optional[str] = None

    model_config = {"from_attributes": True}
