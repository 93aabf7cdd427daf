"""
Company registry repository.
"""
import uuid
from collections import defaultdict
from typing import Dict, Iterable, List, Set

from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession

from prospector.models.company import Company, CompanyTag, CompanyClassification
from prospector.repositories.base import BaseRepository


class CompanyRepository(BaseRepository[Company]):
    """Repository for Company lookups, scoped to the caller's tenant."""

    def __init__(self, session: AsyncSession):
        super().__init__(Company, session)

    def _visible_to(self, organization_id: uuid.UUID):
        # shared registry rows have no organization
        return or_(Company.organization_id == organization_id, Company.organization_id.is_(None))

    async def get_visible(self, organization_id: uuid.UUID, company_ids: Iterable[uuid.UUID]) -> List[Company]:
        """Companies in ``company_ids`` that exist for the given tenant."""
        company_ids = list(company_ids)
        if not company_ids:
            return []
        query = select(Company).where(
            Company.id.in_(company_ids),
            self._visible_to(organization_id),
        )
        result = await self.session.exec(query)
        return result.all()

    async def get_existing_ids(self, organization_id: uuid.UUID, company_ids: Iterable[uuid.UUID]) -> Set[uuid.UUID]:
        company_ids = list(company_ids)
        if not company_ids:
            return set()
        query = select(Company.id).where(
            Company.id.in_(company_ids),
            self._visible_to(organization_id),
        )
        result = await self.session.exec(query)
        return set(result.all())

    async def get_tag_keys(self, company_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, List[str]]:
        company_ids = list(company_ids)
        tags = defaultdict(list)
        if not company_ids:
            return tags
        query = (
            select(CompanyTag)
            .where(CompanyTag.company_id.in_(company_ids))
            .order_by(CompanyTag.tag_key)
        )
        result = await self.session.exec(query)
        for tag in result.all():
            tags[tag.company_id].append(tag.tag_key)
        return tags

    async def get_tsic_codes(self, company_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, List[str]]:
        company_ids = list(company_ids)
        codes = defaultdict(list)
        if not company_ids:
            return codes
        query = (
            select(CompanyClassification)
            .where(CompanyClassification.company_id.in_(company_ids))
            .order_by(CompanyClassification.is_primary.desc(), CompanyClassification.tsic)
        )
        result = await self.session.exec(query)
        for classification in result.all():
            codes[classification.company_id].append(classification.tsic)
        return codes

