"""
Company lists API routes.
"""
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response
from sqlmodel.ext.asyncio.session import AsyncSession

from prospector.config import settings
from prospector.database import get_session
from prospector.services.company_list_service import CompanyListService
from prospector.services.list_item_service import ListItemService
from prospector.services.membership_service import MembershipService
from prospector.services.scoring_service import ScoringService
from prospector.schemas.common import ErrorResponse, PaginatedResponse
from prospector.schemas.company_list import (
    BulkAddResult,
    BulkCompanyIds,
    BulkCompanyIdsWithNote,
    BulkRemoveResult,
    CompanyListCreate,
    CompanyListResponse,
    CompanyListScopeQuery,
    CompanyListUpdate,
    ItemStatusUpdate,
    ListItemQuery,
)
from prospector.schemas.scoring import ListScoreRequest, RankingResponse
from prospector.schemas.principal import Principal
from prospector.api.deps import get_current_principal

router = APIRouter(
    prefix=f"{settings.API_PREFIX}/company-lists",
    tags=["company-lists"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)


@router.get("", response_model=PaginatedResponse[CompanyListResponse])
async def list_company_lists(
    scope: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    q: Optional[str] = None,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session)
):
    """List company lists in a scope (mine, shared, org)."""
    params = CompanyListScopeQuery.build(scope=scope, page=page, limit=limit, q=q)
    list_service = CompanyListService(session)
    return await list_service.search(principal, params)


@router.post("", response_model=CompanyListResponse, status_code=201)
async def create_company_list(
    list_data: CompanyListCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session)
):
    """Create a new company list."""
    list_service = CompanyListService(session)
    return await list_service.create(principal, list_data)


@router.get("/{list_id}", response_model=CompanyListResponse)
async def get_company_list(
    list_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session)
):
    """Get a company list by ID."""
    list_service = CompanyListService(session)
    return await list_service.get(principal, list_id)


@router.patch("/{list_id}", response_model=CompanyListResponse)
async def update_company_list(
    list_id: uuid.UUID,
    list_data: CompanyListUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session)
):
    """Update a company list."""
    list_service = CompanyListService(session)
    return await list_service.update(principal, list_id, list_data)


@router.delete("/{list_id}", status_code=204)
async def delete_company_list(
    list_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session)
):
    """Delete a company list and its items."""
    list_service = CompanyListService(session)
    await list_service.delete(principal, list_id)
    return Response(status_code=204)


@router.get("/{list_id}/items")
async def list_company_list_items(
    list_id: uuid.UUID,
    limit: Optional[int] = None,
    next_cursor: Optional[str] = Query(None, alias="nextCursor"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_dir: Optional[str] = Query(None, alias="sortDir"),
    province: Optional[str] = Query(None, alias="filters[province]"),
    tag_key: Optional[str] = Query(None, alias="filters[tagKey]"),
    tsic: Optional[str] = Query(None, alias="filters[tsic]"),
    q: Optional[str] = None,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session)
):
    """Cursor paginated list contents."""
    params = ListItemQuery.build(
        limit=limit,
        cursor=next_cursor,
        sort_by=sort_by,
        sort_dir=sort_dir,
        province=province,
        tag_key=tag_key,
        tsic=tsic,
        q=q,
    )
    item_service = ListItemService(session)
    page = await item_service.list_items(principal, list_id, params)
    return page.to_response()


@router.post("/{list_id}/items", response_model=BulkAddResult)
async def add_companies_to_list(
    list_id: uuid.UUID,
    body: BulkCompanyIdsWithNote,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session)
):
    """Add companies to a list."""
    company_ids = body.unique_ids()
    membership_service = MembershipService(session)
    return await membership_service.add_companies(principal, list_id, company_ids, body.note)


@router.delete("/{list_id}/items", response_model=BulkRemoveResult)
async def remove_companies_from_list(
    list_id: uuid.UUID,
    body: BulkCompanyIds,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session)
):
    """Remove companies from a list."""
    company_ids = body.unique_ids()
    membership_service = MembershipService(session)
    return await membership_service.remove_companies(principal, list_id, company_ids)


@router.patch("/{list_id}/items/{item_id}")
async def update_list_item_status(
    list_id: uuid.UUID,
    item_id: uuid.UUID,
    body: ItemStatusUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session)
):
    """Change the pipeline status of a list item."""
    membership_service = MembershipService(session)
    item = await membership_service.update_item_status(principal, list_id, item_id, body.status)
    return {
        "itemId": str(item.id),
        "listId": str(item.list_id),
        "status": item.status,
        "statusChangedAt": item.status_changed_at.isoformat(),
    }


@router.post("/{list_id}/score", response_model=RankingResponse)
async def score_company_list(
    list_id: uuid.UUID,
    body: ListScoreRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session)
):
    """Score every item of a list against criteria and return the ranking."""
    scoring_service = ScoringService(session)
    ranking = await scoring_service.score_list(principal, list_id, body.criteria)
    return RankingResponse(items=ranking, total=len(ranking))
