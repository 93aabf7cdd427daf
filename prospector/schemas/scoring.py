"""
Scoring schemas.
"""
import uuid
from typing import Dict, List, Optional

from prospector.schemas.common import CamelModel


class ScoringCriteria(CamelModel):
    """Criteria a company is matched against. Empty values are ignored."""
    industrial: Optional[str] = None
    province: Optional[str] = None
    company_size: Optional[str] = None
    contact_status: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "industrial": "Manufacturing",
                "province": "Bangkok",
                "companySize": "M"
            }
        }


class LeadScore(CamelModel):
    """Score of one company; ``matching_summary`` is keyed by criterion name."""
    company_id: uuid.UUID
    name: Optional[str] = None
    score: int
    matching_summary: Dict[str, bool] = {}


class RankRequest(CamelModel):
    """Rank registry companies against criteria."""
    company_ids: Optional[List[str]] = None
    criteria: ScoringCriteria = ScoringCriteria()


class ListScoreRequest(CamelModel):
    """Score every item of a list against criteria."""
    criteria: ScoringCriteria = ScoringCriteria()


class RankingResponse(CamelModel):
    items: List[LeadScore]
    total: int
