"""
List item service - cursor paginated retrieval of list contents.
"""
import logging
import uuid
from datetime import datetime
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from prospector.core.access import ensure_can_read
from prospector.core.exceptions import InternalError, ListNotFoundError, ValidationError
from prospector.core.pagination import CursorInfo, decode_cursor
from prospector.repositories.company_list_repo import CompanyListRepository
from prospector.repositories.company_repo import CompanyRepository
from prospector.repositories.list_item_repo import ItemRow, ListItemRepository, sort_value
from prospector.schemas.company_list import (
    CompanySummary,
    ListItemPage,
    ListItemQuery,
    ListItemResponse,
)
from prospector.schemas.principal import Principal

logger = logging.getLogger(__name__)

_CURSOR_VALUE_TYPES = {
    "name": (str,),
    "createdAt": (datetime,),
    "position": (int,),
}


def check_cursor_value(cursor: CursorInfo) -> None:
    value = cursor.last_value
    if isinstance(value, bool) or not isinstance(value, _CURSOR_VALUE_TYPES[cursor.sort_by]):
        raise ValidationError("INVALID_CURSOR", "Cursor is malformed")


class ListItemService:
    """Service for reading list contents."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.list_repo = CompanyListRepository(session)
        self.company_repo = CompanyRepository(session)
        self.item_repo = ListItemRepository(session)

    async def list_items(
        self,
        principal: Principal,
        list_id: uuid.UUID,
        params: ListItemQuery
    ) -> ListItemPage:
        """
        Return up to ``params.limit`` items after ``params.cursor``.

        ``next_cursor`` is set only when more rows follow, so walking the
        cursors visits every item exactly once.
        """
        cursor = decode_cursor(params.cursor, params.sort_by)
        if cursor is not None:
            check_cursor_value(cursor)

        try:
            company_list = await self.list_repo.get(list_id)
            if not company_list:
                raise ListNotFoundError(str(list_id))
            ensure_can_read(principal, company_list)

            rows = await self.item_repo.page(list_id, params, cursor, fetch=params.limit + 1)
            has_more = len(rows) > params.limit
            rows = rows[:params.limit]
            items = await self._to_responses(rows)
        except SQLAlchemyError as e:
            logger.error(f"Reading items of list {list_id} failed: {e}")
            raise InternalError() from e

        next_cursor = None
        if has_more and rows:
            last_item, last_company = rows[-1]
            next_cursor = CursorInfo(
                sort_by=params.sort_by,
                last_value=sort_value(params.sort_by, last_item, last_company),
                last_id=last_item.id,
            ).encode()

        return ListItemPage(items=items, next_cursor=next_cursor)

    async def _to_responses(self, rows: List[ItemRow]) -> List[ListItemResponse]:
        company_ids = [company.id for _, company in rows]
        tags = await self.company_repo.get_tag_keys(company_ids)
        tsics = await self.company_repo.get_tsic_codes(company_ids)

        return [
            ListItemResponse(
                item_id=item.id,
                list_id=item.list_id,
                note=item.note,
                position=item.position,
                lead_score=item.lead_score,
                score_breakdown=item.score_breakdown or {},
                status=item.status,
                status_changed_at=item.status_changed_at,
                added_at=item.added_at,
                added_by_user_id=item.added_by_user_id,
                company=CompanySummary(
                    company_id=company.id,
                    name=company.name_en,
                    name_th=company.name_th,
                    registration_no=company.registration_no,
                    province=company.province,
                    company_size=company.company_size,
                    verification_status=company.verification_status,
                    industry_key=company.industry_key,
                    website=company.website,
                    tags=tags.get(company.id, []),
                    tsics=tsics.get(company.id, []),
                ),
            )
            for item, company in rows
        ]
