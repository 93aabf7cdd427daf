"""
Company list repository with scope search and counter maintenance.
"""
import uuid
from typing import Optional, List, Tuple

from sqlalchemy import func, update
from sqlmodel import select, or_, and_
from sqlmodel.ext.asyncio.session import AsyncSession

from prospector.core.access import ReadGrants, Visibility
from prospector.models.company_list import CompanyList
from prospector.models.types import utc_now
from prospector.repositories.base import BaseRepository
from prospector.schemas.principal import Principal


def like_pattern(term: str) -> str:
    """Substring pattern with LIKE wildcards in ``term`` escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class CompanyListRepository(BaseRepository[CompanyList]):
    """Repository for CompanyList operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(CompanyList, session)

    async def get_for_update(self, list_id: uuid.UUID) -> Optional[CompanyList]:
        """Load a list and lock its row until the transaction ends."""
        query = select(CompanyList).where(CompanyList.id == list_id).with_for_update()
        result = await self.session.exec(query)
        return result.first()

    async def adjust_total(self, company_list: CompanyList, delta: int) -> None:
        """
        Shift the denormalized item count by ``delta`` inside the current
        transaction. The increment is evaluated by the database.
        """
        now = utc_now()
        statement = (
            update(CompanyList)
            .where(CompanyList.id == company_list.id)
            .values(
                total_companies=CompanyList.total_companies + delta,
                last_activity_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(statement)
        await self.session.refresh(company_list)

    async def touch(self, company_list: CompanyList) -> None:
        await self.adjust_total(company_list, 0)

    async def search(
        self,
        principal: Principal,
        grants: ReadGrants,
        scope: str,
        q: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[CompanyList], int]:
        """
        One page of the lists in ``scope`` that the principal may read,
        together with the total number of matches.
        """
        query = select(CompanyList)

        if scope == "mine":
            query = query.where(CompanyList.owner_user_id == principal.id)
        elif scope == "shared":
            query = query.where(
                CompanyList.is_shared == True,  # noqa: E712
                CompanyList.owner_user_id != principal.id,
                or_(
                    CompanyList.organization_id == principal.organization_id,
                    CompanyList.visibility == Visibility.PUBLIC.value,
                ),
            )
        elif scope == "org":
            query = query.where(
                and_(
                    CompanyList.organization_id == principal.organization_id,
                    CompanyList.visibility == Visibility.ORGANIZATION.value,
                )
            )

        if not grants.everything:
            readable = [CompanyList.owner_user_id == principal.id]
            if grants.public:
                readable.append(CompanyList.visibility == Visibility.PUBLIC.value)
            if grants.organization:
                readable.append(
                    and_(
                        CompanyList.visibility == Visibility.ORGANIZATION.value,
                        CompanyList.organization_id == principal.organization_id,
                    )
                )
            query = query.where(or_(*readable))

        if q:
            pattern = like_pattern(q)
            query = query.where(
                or_(
                    CompanyList.name.ilike(pattern, escape="\\"),
                    CompanyList.description.ilike(pattern, escape="\\"),
                )
            )

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.session.exec(count_query)
        total = total_result.one()

        offset = (page - 1) * limit
        query = query.order_by(
            CompanyList.last_activity_at.desc(),
            CompanyList.created_at.desc(),
            CompanyList.id,
        ).offset(offset).limit(limit)
        result = await self.session.exec(query)
        return result.all(), total
