"""
Scholar Registry: Scholar SQLAlchemy Model
===========================================

What:  ORM model for the `scholars` table.
Who:   Used by ScholarService for CRUD and by Alembic for schema management.

Table Design:
    - UUID primary key, generated on insert and never changed afterwards
    - Text columns are all nullable: records are accepted with any subset
      of fields, including none
    - major / institution are JSON so a record can hold either a single
      value ("CS") or a list (["CS", "EE"]) exactly as it was written
    - image holds the retrievable blob URL, or NULL when there is no image
      (never set and removed are both NULL)
"""

import uuid
from typing import Any, Optional

from sqlalchemy import JSON, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from scholar_registry.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
FlexibleJSON = JSON().with_variant(JSONB(), "postgresql")

# Columns the API accepts on create/update, in form order
SCHOLAR_FIELDS = ("name", "email", "ig_acc", "about", "sponsor", "major", "institution")

# Subset stored as a one-element list when an update supplies a single value
LIST_FIELDS = ("major", "institution")


class Scholar(Base):
    """
    A scholar record.

    Lifecycle:
        1. Created by ScholarService.create_scholar (id assigned here)
        2. Mutated only through ScholarService.update_scholar, which writes
           just the staged columns
        3. Deleted by ScholarService.delete_scholar (image blob is kept)
    """

    __tablename__ = "scholars"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Store-generated identifier, immutable once assigned",
    )

    name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Instagram handle
    ig_acc: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Free-text bio
    about: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # One of the sponsors in the `sponsors` table, or free text
    sponsor: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    major: Mapped[Optional[Any]] = mapped_column(FlexibleJSON, nullable=True)
    institution: Mapped[Optional[Any]] = mapped_column(FlexibleJSON, nullable=True)

    image: Mapped[Optional[str]] = mapped_column(
        String(2048),
        nullable=True,
        default=None,
        comment="Retrievable URL of the uploaded image in the blob store",
    )

    def __repr__(self) -> str:
        return f"<Scholar(id={self.id}, name='{self.name}')>"
