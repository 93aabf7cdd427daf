"""
List item repository: membership lookups and keyset pagination.
"""
import uuid
from typing import Any, Iterable, List, Optional, Set, Tuple

from sqlmodel import select, or_, and_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from prospector.core.pagination import CursorInfo
from prospector.models.company import Company, CompanyTag, CompanyClassification
from prospector.models.company_list import CompanyListItem
from prospector.repositories.base import BaseRepository
from prospector.repositories.company_list_repo import like_pattern
from prospector.schemas.company_list import ListItemQuery

ItemRow = Tuple[CompanyListItem, Company]

# Primary sort expressions, item id is always the secondary key
SORT_EXPRESSIONS = {
    "name": Company.name_en,
    "createdAt": CompanyListItem.added_at,
    "position": func.coalesce(CompanyListItem.position, 0),
}


def sort_value(sort_by: str, item: CompanyListItem, company: Company) -> Any:
    """Value of the primary sort key for a row, as stored in cursors."""
    if sort_by == "name":
        return company.name_en
    if sort_by == "createdAt":
        return item.added_at
    return item.position or 0


class ListItemRepository(BaseRepository[CompanyListItem]):
    """Repository for CompanyListItem operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(CompanyListItem, session)

    async def get_in_list(self, list_id: uuid.UUID, item_id: uuid.UUID) -> Optional[CompanyListItem]:
        query = select(CompanyListItem).where(
            CompanyListItem.id == item_id,
            CompanyListItem.list_id == list_id,
        )
        result = await self.session.exec(query)
        return result.first()

    async def get_member_company_ids(self, list_id: uuid.UUID, company_ids: Iterable[uuid.UUID]) -> Set[uuid.UUID]:
        """Which of ``company_ids`` already have a membership row in the list."""
        company_ids = list(company_ids)
        if not company_ids:
            return set()
        query = select(CompanyListItem.company_id).where(
            CompanyListItem.list_id == list_id,
            CompanyListItem.company_id.in_(company_ids),
        )
        result = await self.session.exec(query)
        return set(result.all())

    async def get_by_company_ids(self, list_id: uuid.UUID, company_ids: Iterable[uuid.UUID]) -> List[CompanyListItem]:
        company_ids = list(company_ids)
        if not company_ids:
            return []
        query = select(CompanyListItem).where(
            CompanyListItem.list_id == list_id,
            CompanyListItem.company_id.in_(company_ids),
        )
        result = await self.session.exec(query)
        return result.all()

    async def max_position(self, list_id: uuid.UUID) -> int:
        query = select(func.max(CompanyListItem.position)).where(CompanyListItem.list_id == list_id)
        result = await self.session.exec(query)
        return result.one() or 0

    async def list_with_companies(self, list_id: uuid.UUID) -> List[ItemRow]:
        """Every item of a list joined with its company, in position order."""
        query = (
            select(CompanyListItem, Company)
            .join(Company, Company.id == CompanyListItem.company_id)
            .where(CompanyListItem.list_id == list_id)
            .order_by(func.coalesce(CompanyListItem.position, 0), CompanyListItem.id)
        )
        result = await self.session.exec(query)
        return result.all()

    async def page(
        self,
        list_id: uuid.UUID,
        params: ListItemQuery,
        cursor: Optional[CursorInfo] = None,
        fetch: Optional[int] = None
    ) -> List[ItemRow]:
        """
        One page of items ordered by ``(sort key, item id)``.

        Filters apply first, then the free text search, then the keyset
        condition resuming strictly after ``cursor``.
        """
        query = (
            select(CompanyListItem, Company)
            .join(Company, Company.id == CompanyListItem.company_id)
            .where(CompanyListItem.list_id == list_id)
        )

        if params.province:
            query = query.where(Company.province == params.province)
        if params.tag_key:
            query = query.where(
                Company.id.in_(select(CompanyTag.company_id).where(CompanyTag.tag_key == params.tag_key))
            )
        if params.tsic:
            query = query.where(
                Company.id.in_(
                    select(CompanyClassification.company_id).where(CompanyClassification.tsic == params.tsic)
                )
            )
        if params.q:
            pattern = like_pattern(params.q)
            query = query.where(
                or_(
                    Company.name_en.ilike(pattern, escape="\\"),
                    Company.name_th.ilike(pattern, escape="\\"),
                )
            )

        sort_column = SORT_EXPRESSIONS[params.sort_by]
        descending = params.sort_dir == "desc"

        if cursor is not None:
            if descending:
                after = or_(
                    sort_column < cursor.last_value,
                    and_(sort_column == cursor.last_value, CompanyListItem.id < cursor.last_id),
                )
            else:
                after = or_(
                    sort_column > cursor.last_value,
                    and_(sort_column == cursor.last_value, CompanyListItem.id > cursor.last_id),
                )
            query = query.where(after)

        if descending:
            query = query.order_by(sort_column.desc(), CompanyListItem.id.desc())
        else:
            query = query.order_by(sort_column.asc(), CompanyListItem.id.asc())

        query = query.limit(fetch or params.limit)
        result = await self.session.exec(query)
        return result.all()
