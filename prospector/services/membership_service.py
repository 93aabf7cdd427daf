"""
Membership service - bulk add/remove of companies to/from a list.

Every operation runs in one transaction: the list row is locked, membership
rows change and the denormalized ``total_companies`` counter moves by the
same amount before a single commit.
"""
import logging
import uuid
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from prospector.core.access import ListAction, ensure_can_modify
from prospector.core.exceptions import (
    InternalError,
    ListNotFoundError,
    NotFoundError,
    ValidationError,
)
from prospector.models.company_list import CompanyList, CompanyListItem, ITEM_STATUSES
from prospector.models.types import utc_now
from prospector.repositories.company_list_repo import CompanyListRepository
from prospector.repositories.company_repo import CompanyRepository
from prospector.repositories.list_item_repo import ListItemRepository
from prospector.schemas.company_list import BulkAddResult, BulkRemoveResult, SkippedCompany
from prospector.schemas.principal import Principal

logger = logging.getLogger(__name__)


def parse_company_ids(company_ids: List[str]) -> Dict[str, Optional[uuid.UUID]]:
    """Map each raw id to its UUID, or None when it cannot name a company."""
    parsed = {}
    for raw in company_ids:
        try:
            parsed[raw] = uuid.UUID(raw)
        except ValueError:
            parsed[raw] = None
    return parsed


class MembershipService:
    """Service for list membership operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.list_repo = CompanyListRepository(session)
        self.company_repo = CompanyRepository(session)
        self.item_repo = ListItemRepository(session)

    async def _load_for_update(self, principal: Principal, list_id: uuid.UUID) -> CompanyList:
        company_list = await self.list_repo.get_for_update(list_id)
        if not company_list:
            raise ListNotFoundError(str(list_id))
        ensure_can_modify(principal, company_list, ListAction.UPDATE)
        return company_list

    async def add_companies(
        self,
        principal: Principal,
        list_id: uuid.UUID,
        company_ids: List[str],
        note: Optional[str] = None
    ) -> BulkAddResult:
        """
        Add companies to a list.

        Each id ends up either in ``added`` or in ``skipped`` (NOT_FOUND when
        it is not in the registry, DUPLICATE when it is already a member).
        """
        if not company_ids:
            raise ValidationError("INVALID_COMPANY_IDS", "companyIds must be a non-empty array")

        added: List[str] = []
        skipped: List[SkippedCompany] = []
        try:
            company_list = await self._load_for_update(principal, list_id)

            parsed = parse_company_ids(company_ids)
            candidate_ids = [cid for cid in parsed.values() if cid is not None]
            existing = await self.company_repo.get_existing_ids(principal.organization_id, candidate_ids)
            members = await self.item_repo.get_member_company_ids(list_id, candidate_ids)
            position = await self.item_repo.max_position(list_id)

            for raw_id, company_id in parsed.items():
                if company_id is None or company_id not in existing:
                    skipped.append(SkippedCompany(company_id=raw_id, reason="NOT_FOUND"))
                    continue
                if company_id in members:
                    skipped.append(SkippedCompany(company_id=raw_id, reason="DUPLICATE"))
                    continue

                now = utc_now()
                item = CompanyListItem(
                    list_id=list_id,
                    company_id=company_id,
                    note=note,
                    position=position + 1,
                    lead_score=0,
                    status="new",
                    status_changed_at=now,
                    added_at=now,
                    added_by_user_id=principal.id,
                )
                try:
                    # a concurrent writer may have inserted the same pair
                    async with self.session.begin_nested():
                        self.session.add(item)
                except IntegrityError:
                    logger.info(f"Company {raw_id} was added to list {list_id} concurrently")
                    skipped.append(SkippedCompany(company_id=raw_id, reason="DUPLICATE"))
                    continue

                members.add(company_id)
                position += 1
                added.append(raw_id)

            await self.list_repo.adjust_total(company_list, len(added))
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Adding companies to list {list_id} failed: {e}")
            raise InternalError() from e
        except BaseException:
            # cancellation included: nothing of the batch may survive
            await self.session.rollback()
            raise

        logger.info(f"List {list_id}: added {len(added)}, skipped {len(skipped)}")
        return BulkAddResult(list_id=list_id, added=added, skipped=skipped)

    async def remove_companies(
        self,
        principal: Principal,
        list_id: uuid.UUID,
        company_ids: List[str]
    ) -> BulkRemoveResult:
        """Remove companies; ids without a membership are reported as ``missing``."""
        if not company_ids:
            raise ValidationError("INVALID_COMPANY_IDS", "companyIds must be a non-empty array")

        removed: List[str] = []
        missing: List[str] = []
        try:
            company_list = await self._load_for_update(principal, list_id)

            parsed = parse_company_ids(company_ids)
            items = await self.item_repo.get_by_company_ids(
                list_id, [cid for cid in parsed.values() if cid is not None]
            )
            items_by_company = {item.company_id: item for item in items}

            for raw_id, company_id in parsed.items():
                item = items_by_company.pop(company_id, None) if company_id else None
                if item is None:
                    missing.append(raw_id)
                    continue
                await self.item_repo.delete(item)
                removed.append(raw_id)

            await self.list_repo.adjust_total(company_list, -len(removed))
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Removing companies from list {list_id} failed: {e}")
            raise InternalError() from e
        except BaseException:
            await self.session.rollback()
            raise

        logger.info(f"List {list_id}: removed {len(removed)}, missing {len(missing)}")
        return BulkRemoveResult(list_id=list_id, removed=removed, missing=missing)

    async def update_item_status(
        self,
        principal: Principal,
        list_id: uuid.UUID,
        item_id: uuid.UUID,
        status: Optional[str]
    ) -> CompanyListItem:
        """Move a list item through the lead pipeline."""
        if status not in ITEM_STATUSES:
            raise ValidationError("INVALID_STATUS", f"Status must be one of {', '.join(ITEM_STATUSES)}")

        try:
            company_list = await self._load_for_update(principal, list_id)
            item = await self.item_repo.get_in_list(list_id, item_id)
            if not item:
                raise NotFoundError("List item", str(item_id))

            if item.status != status:
                item.status = status
                item.status_changed_at = utc_now()
                self.session.add(item)
            await self.list_repo.touch(company_list)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Updating item {item_id} of list {list_id} failed: {e}")
            raise InternalError() from e
        except BaseException:
            await self.session.rollback()
            raise

        await self.session.refresh(item)
        return item
