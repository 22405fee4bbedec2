"""Create scholars and sponsors tables

Revision ID: 001
Revises: None
Create Date: 2025-02-10 00:00:00.000000+00:00

What:  Creates `scholars` and `sponsors`, and seeds the sponsors offered by
       the record form.
Rollback: downgrade() drops both tables (all data lost).
"""

import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

FlexibleJSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")

SEED_SPONSORS = (
    "Yayasan Khazanah",
    "Permodalan Nasional Berhad",
    "Bank Negara Malaysia",
    "Yayasan TAR",
)


def upgrade() -> None:
    op.create_table(
        "scholars",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False,
                  comment="Store-generated identifier, immutable once assigned"),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("ig_acc", sa.Text(), nullable=True),
        sa.Column("about", sa.Text(), nullable=True),
        sa.Column("sponsor", sa.Text(), nullable=True),
        # Scalar or list, stored exactly as written
        sa.Column("major", FlexibleJSON, nullable=True),
        sa.Column("institution", FlexibleJSON, nullable=True),
        sa.Column("image", sa.String(2048), nullable=True,
                  comment="Retrievable URL of the uploaded image in the blob store"),
        sa.PrimaryKeyConstraint("id", name="pk_scholars"),
    )

    sponsors = op.create_table(
        "sponsors",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("website", sa.String(512), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_sponsors"),
    )

    op.bulk_insert(
        sponsors,
        [
            {"id": uuid.uuid4(), "name": name, "description": None, "website": None}
            for name in SEED_SPONSORS
        ],
    )


def downgrade() -> None:
    op.drop_table("sponsors")
    op.drop_table("scholars")
