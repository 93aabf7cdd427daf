"""
Scoring API routes.
"""
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from prospector.config import settings
from prospector.database import get_session
from prospector.services.scoring_service import ScoringService
from prospector.schemas.common import ErrorResponse
from prospector.schemas.scoring import RankRequest, RankingResponse
from prospector.schemas.principal import Principal
from prospector.api.deps import get_current_principal

router = APIRouter(
    prefix=f"{settings.API_PREFIX}/scoring",
    tags=["scoring"],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)


@router.post("/rank", response_model=RankingResponse)
async def rank_companies(
    body: RankRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session)
):
    """Rank companies by how well they match the criteria."""
    scoring_service = ScoringService(session)
    ranking = await scoring_service.rank(principal, body.company_ids, body.criteria)
    return RankingResponse(items=ranking, total=len(ranking))
