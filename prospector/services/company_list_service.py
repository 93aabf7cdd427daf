"""
Company list service - list CRUD and the lists overview.
All access decisions go through the list access guard.
"""
import logging
import uuid

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from prospector.core.access import ListAction, ensure_can_modify, ensure_can_read, read_grants
from prospector.core.exceptions import InternalError, ListNotFoundError
from prospector.core.pagination import create_paginated_response
from prospector.models.company_list import CompanyList, CompanyListItem
from prospector.models.types import utc_now
from prospector.repositories.company_list_repo import CompanyListRepository
from prospector.schemas.company_list import (
    CompanyListCreate,
    CompanyListScopeQuery,
    CompanyListUpdate,
)
from prospector.schemas.principal import Principal

logger = logging.getLogger(__name__)


class CompanyListService:
    """Service for company list operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.list_repo = CompanyListRepository(session)

    async def _get_existing(self, list_id: uuid.UUID) -> CompanyList:
        company_list = await self.list_repo.get(list_id)
        if not company_list:
            raise ListNotFoundError(str(list_id))
        return company_list

    async def create(self, principal: Principal, list_data: CompanyListCreate) -> CompanyList:
        """Create a list owned by the principal in its organization."""
        list_data.validate_input()

        now = utc_now()
        company_list = CompanyList(
            organization_id=principal.organization_id,
            owner_user_id=principal.id,
            name=list_data.name.strip(),
            description=list_data.description,
            visibility=list_data.visibility or "private",
            is_shared=list_data.is_shared,
            is_smart_list=list_data.is_smart_list,
            smart_criteria=list_data.smart_criteria or {},
            total_companies=0,
            last_activity_at=now,
            created_at=now,
            updated_at=now,
        )
        try:
            await self.list_repo.add(company_list)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Creating company list failed: {e}")
            raise InternalError() from e

        await self.session.refresh(company_list)
        logger.info(f"Created company list {company_list.id} for user {principal.id}")
        return company_list

    async def get(self, principal: Principal, list_id: uuid.UUID) -> CompanyList:
        """Get a list the principal may read; hidden lists look missing."""
        company_list = await self._get_existing(list_id)
        ensure_can_read(principal, company_list)
        return company_list

    async def update(
        self,
        principal: Principal,
        list_id: uuid.UUID,
        list_data: CompanyListUpdate
    ) -> CompanyList:
        """Update list attributes. Ownership never changes here."""
        list_data.validate_input()
        company_list = await self._get_existing(list_id)
        ensure_can_modify(principal, company_list, ListAction.UPDATE)

        update_data = list_data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is None and field not in ("description", "smart_criteria"):
                continue
            if field == "name":
                value = value.strip()
            if field == "smart_criteria":
                value = value or {}
            setattr(company_list, field, value)
        company_list.updated_at = utc_now()

        try:
            self.session.add(company_list)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Updating company list {list_id} failed: {e}")
            raise InternalError() from e

        await self.session.refresh(company_list)
        return company_list

    async def delete(self, principal: Principal, list_id: uuid.UUID) -> None:
        """Delete a list together with its items."""
        company_list = await self._get_existing(list_id)
        ensure_can_modify(principal, company_list, ListAction.DELETE)

        try:
            await self.session.execute(delete(CompanyListItem).where(CompanyListItem.list_id == list_id))
            await self.list_repo.delete(company_list)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Deleting company list {list_id} failed: {e}")
            raise InternalError() from e

        logger.info(f"Deleted company list {list_id}")

    async def search(self, principal: Principal, params: CompanyListScopeQuery) -> dict:
        """
        Lists overview for one scope.

        ``mine`` are the principal's own lists, ``shared`` lists others
        shared and the principal can read, ``org`` organization wide lists.
        Read rights are resolved once and filtered in the database.
        """
        try:
            items, total = await self.list_repo.search(
                principal,
                read_grants(principal),
                params.scope,
                params.q,
                page=params.page,
                limit=params.limit,
            )
        except SQLAlchemyError as e:
            logger.error(f"Searching company lists failed: {e}")
            raise InternalError() from e

        for company_list in items:
            ensure_can_read(principal, company_list)
        return create_paginated_response(items, total, params.page, params.limit)
