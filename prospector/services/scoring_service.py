"""
Scoring service - lead scoring of companies against caller criteria.

``score_company`` and ``rank_companies`` are pure; ``ScoringService`` adds
storage access and persists scores on list items.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from prospector.core.access import ListAction, ensure_can_modify, ensure_can_read
from prospector.core.exceptions import InternalError, ListNotFoundError, ValidationError
from prospector.models.types import utc_now
from prospector.repositories.company_list_repo import CompanyListRepository
from prospector.repositories.company_repo import CompanyRepository
from prospector.repositories.list_item_repo import ListItemRepository
from prospector.schemas.principal import Principal
from prospector.schemas.scoring import LeadScore, ScoringCriteria

logger = logging.getLogger(__name__)

# criterion field -> company attribute it is compared with
CRITERIA_ATTRIBUTES = {
    "industrial": "industry_key",
    "province": "province",
    "company_size": "company_size",
    "contact_status": "verification_status",
}


def specified_criteria(criteria: ScoringCriteria) -> Dict[str, Tuple[str, str]]:
    """Criteria with a non-empty value, keyed by their public (camelCase) name."""
    specified = {}
    for field_name in CRITERIA_ATTRIBUTES:
        value = getattr(criteria, field_name)
        if value is not None and value != "":
            alias = ScoringCriteria.model_fields[field_name].alias or field_name
            specified[alias] = (field_name, value)
    return specified


def score_company(company: Any, criteria: ScoringCriteria) -> LeadScore:
    """
    Score a company by the share of specified criteria it matches exactly.

    A partial match still scores; with no criteria specified the score is 0.
    """
    specified = specified_criteria(criteria)
    company_id = getattr(company, "company_id", None) or company.id
    name = getattr(company, "name", None) or getattr(company, "name_en", None)

    if not specified:
        return LeadScore(company_id=company_id, name=name, score=0, matching_summary={})

    matching_summary = {}
    for alias, (field_name, expected) in specified.items():
        actual = getattr(company, CRITERIA_ATTRIBUTES[field_name], None)
        matching_summary[alias] = actual == expected

    matched = sum(1 for matched in matching_summary.values() if matched)
    score = int(round(100 * matched / len(specified)))
    return LeadScore(company_id=company_id, name=name, score=score, matching_summary=matching_summary)


def ranking_key(result: LeadScore):
    # score desc, then name asc, then company id asc
    return (-result.score, result.name or "", str(result.company_id))


def rank_companies(companies: Sequence[Any], criteria: ScoringCriteria) -> List[LeadScore]:
    """Score every company and order best first with a deterministic tie-break."""
    return sorted((score_company(company, criteria) for company in companies), key=ranking_key)


class ScoringService:
    """Service for scoring operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.company_repo = CompanyRepository(session)
        self.list_repo = CompanyListRepository(session)
        self.item_repo = ListItemRepository(session)

    async def rank(
        self,
        principal: Principal,
        company_ids: Optional[List[str]],
        criteria: ScoringCriteria
    ) -> List[LeadScore]:
        """Rank registry companies visible to the principal's organization."""
        if not company_ids:
            raise ValidationError("INVALID_COMPANY_IDS", "companyIds must be a non-empty array")
        parsed = []
        for raw in company_ids:
            try:
                parsed.append(uuid.UUID(str(raw)))
            except ValueError:
                continue

        companies = await self.company_repo.get_visible(principal.organization_id, parsed)
        return rank_companies(companies, criteria)

    async def score_list(
        self,
        principal: Principal,
        list_id: uuid.UUID,
        criteria: ScoringCriteria
    ) -> List[LeadScore]:
        """
        Score all items of a list, store score and matching summary on each
        item and return the ranking.
        """
        company_list = await self.list_repo.get(list_id)
        if not company_list:
            raise ListNotFoundError(str(list_id))
        ensure_can_read(principal, company_list)
        ensure_can_modify(principal, company_list, ListAction.UPDATE)

        try:
            rows = await self.item_repo.list_with_companies(list_id)
            now = utc_now()
            for item, company in rows:
                result = score_company(company, criteria)
                item.lead_score = float(result.score)
                item.score_breakdown = dict(result.matching_summary)
                item.score_calculated_at = now
                self.session.add(item)
            await self.list_repo.touch(company_list)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Scoring list {list_id} failed: {e}")
            raise InternalError() from e

        logger.info(f"Scored {len(rows)} items of list {list_id}")
        return rank_companies([company for _, company in rows], criteria)
