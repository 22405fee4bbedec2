"""
Scholar Registry: Sponsor Service
==================================

Read-only access to the `sponsors` table. There are no write operations;
sponsor rows come from the initial migration.
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scholar_registry.exceptions import NotFoundError, ScholarRegistryError, StoreError
from scholar_registry.models.sponsor import Sponsor
from scholar_registry.schemas.sponsor import SponsorResponse
from scholar_registry.services.identifiers import parse_identifier

logger = logging.getLogger(__name__)


class SponsorService:

    async def list_sponsors(self, db: AsyncSession) -> List[SponsorResponse]:
        try:
            result = await db.execute(select(Sponsor))
            return [SponsorResponse.model_validate(s) for s in result.scalars().all()]
        except Exception as e:
            logger.error("Error retrieving sponsors: %s", str(e), exc_info=True)
            raise StoreError(
                message="Error retrieving sponsors",
                context={"original_error": type(e).__name__},
            )

    async def get_sponsor(self, db: AsyncSession, raw_id: str) -> SponsorResponse:
        """
        Raises:
            InvalidIdentifierError: malformed id (no query issued)
            NotFoundError: no sponsor with this id
        """
        sponsor_id = parse_identifier(raw_id)
        try:
            result = await db.execute(select(Sponsor).where(Sponsor.id == sponsor_id))
            sponsor = result.scalar_one_or_none()
            if sponsor is None:
                raise NotFoundError(resource="sponsor", resource_id=raw_id)
            return SponsorResponse.model_validate(sponsor)

        except ScholarRegistryError:
            raise
        except Exception as e:
            logger.error("Error retrieving sponsor %s: %s", raw_id, str(e))
            raise StoreError(
                message="Error retrieving sponsor",
                context={"sponsor_id": raw_id, "original_error": type(e).__name__},
            )


sponsor_service = SponsorService()
