"""
Company list schemas.
"""
import re
import uuid
from typing import Optional, List, Literal
from datetime import datetime

from prospector.config import settings
from prospector.core.exceptions import ValidationError
from prospector.schemas.common import CamelModel

SORT_FIELDS = ("name", "createdAt", "position")
SORT_DIRECTIONS = ("asc", "desc")
LIST_SCOPES = ("mine", "shared", "org")
VISIBILITIES = ("private", "team", "organization", "public")
TSIC_PATTERN = re.compile(r"^[0-9]{5}$")

SkipReason = Literal["DUPLICATE", "NOT_FOUND"]


def check_limit(limit: Optional[int]) -> int:
    if limit is None:
        return settings.DEFAULT_PAGE_LIMIT
    if limit < 1 or limit > settings.MAX_PAGE_LIMIT:
        raise ValidationError("INVALID_LIMIT", f"Limit must be between 1 and {settings.MAX_PAGE_LIMIT}")
    return limit


def check_visibility(visibility: Optional[str]) -> None:
    if visibility is not None and visibility not in VISIBILITIES:
        raise ValidationError("INVALID_VISIBILITY", f"Visibility must be one of {', '.join(VISIBILITIES)}")


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------

class CompanyListCreate(CamelModel):
    """Create a new company list."""
    name: Optional[str] = None
    description: Optional[str] = None
    visibility: Optional[str] = "private"
    is_shared: bool = False
    is_smart_list: bool = False
    smart_criteria: Optional[dict] = None

    def validate_input(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("INVALID_NAME", "Name is required and must be a non-empty string")
        check_visibility(self.visibility)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Bangkok manufacturers",
                "visibility": "organization",
                "isShared": True
            }
        }


class CompanyListUpdate(CamelModel):
    """Update an existing company list."""
    name: Optional[str] = None
    description: Optional[str] = None
    visibility: Optional[str] = None
    is_shared: Optional[bool] = None
    is_smart_list: Optional[bool] = None
    smart_criteria: Optional[dict] = None

    def validate_input(self) -> None:
        if self.name is not None and not self.name.strip():
            raise ValidationError("INVALID_NAME", "Name must be a non-empty string")
        check_visibility(self.visibility)


class CompanyListResponse(CamelModel):
    """Company list response."""
    id: uuid.UUID
    organization_id: uuid.UUID
    owner_user_id: uuid.UUID
    name: str
    description: Optional[str] = None
    visibility: str
    is_shared: bool
    total_companies: int
    is_smart_list: bool
    smart_criteria: dict = {}
    last_activity_at: datetime
    created_at: datetime
    updated_at: datetime


class CompanyListScopeQuery(CamelModel):
    """Query for the lists overview."""
    scope: str = "mine"
    page: int = 1
    limit: int = 25
    q: Optional[str] = None

    @classmethod
    def build(
        cls,
        scope: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        q: Optional[str] = None
    ) -> "CompanyListScopeQuery":
        scope = scope or "mine"
        if scope not in LIST_SCOPES:
            raise ValidationError("INVALID_SCOPE", f"Scope must be one of {', '.join(LIST_SCOPES)}")
        page = 1 if page is None else page
        if page < 1:
            raise ValidationError("INVALID_PAGE", "Page must be >= 1")
        return cls(scope=scope, page=page, limit=check_limit(limit), q=q or None)


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------

class BulkCompanyIds(CamelModel):
    """Bulk membership request body."""
    company_ids: Optional[List[str]] = None

    def unique_ids(self) -> List[str]:
        """Validated company IDs, first occurrence kept, input order preserved."""
        if not self.company_ids:
            raise ValidationError("INVALID_COMPANY_IDS", "companyIds must be a non-empty array")
        seen = []
        for company_id in self.company_ids:
            if not isinstance(company_id, str) or not company_id.strip():
                raise ValidationError("INVALID_COMPANY_IDS", "companyIds must contain non-empty strings")
            if company_id not in seen:
                seen.append(company_id)
        return seen

    class Config:
        json_schema_extra = {"example": {"companyIds": ["5b0c9d8e-0f4e-4f43-9b5c-0c8f4d7f1a11"]}}


class BulkCompanyIdsWithNote(BulkCompanyIds):
    note: Optional[str] = None


class SkippedCompany(CamelModel):
    company_id: str
    reason: SkipReason


class BulkAddResult(CamelModel):
    list_id: uuid.UUID
    added: List[str] = []
    skipped: List[SkippedCompany] = []


class BulkRemoveResult(CamelModel):
    list_id: uuid.UUID
    removed: List[str] = []
    missing: List[str] = []


class ItemStatusUpdate(CamelModel):
    status: Optional[str] = None


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

class CompanySummary(CamelModel):
    """Read-only projection of a company for display and scoring."""
    company_id: uuid.UUID
    name: str
    name_th: Optional[str] = None
    registration_no: Optional[str] = None
    province: Optional[str] = None
    company_size: Optional[str] = None
    verification_status: Optional[str] = None
    industry_key: Optional[str] = None
    website: Optional[str] = None
    tags: List[str] = []
    tsics: List[str] = []


class ListItemResponse(CamelModel):
    item_id: uuid.UUID
    list_id: uuid.UUID
    note: Optional[str] = None
    position: Optional[int] = None
    lead_score: float = 0
    score_breakdown: dict = {}
    status: str
    status_changed_at: datetime
    added_at: datetime
    added_by_user_id: Optional[uuid.UUID] = None
    company: CompanySummary


class ListItemQuery(CamelModel):
    """Validated list item query."""
    limit: int = 25
    cursor: Optional[str] = None
    sort_by: str = "name"
    sort_dir: str = "asc"
    province: Optional[str] = None
    tag_key: Optional[str] = None
    tsic: Optional[str] = None
    q: Optional[str] = None

    @classmethod
    def build(
        cls,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_dir: Optional[str] = None,
        province: Optional[str] = None,
        tag_key: Optional[str] = None,
        tsic: Optional[str] = None,
        q: Optional[str] = None
    ) -> "ListItemQuery":
        """Validate raw query values; raises before any storage access."""
        limit = check_limit(limit)
        sort_by = sort_by or "name"
        if sort_by not in SORT_FIELDS:
            raise ValidationError("INVALID_SORT_BY", f"sortBy must be one of {', '.join(SORT_FIELDS)}")
        sort_dir = sort_dir or "asc"
        if sort_dir not in SORT_DIRECTIONS:
            raise ValidationError("INVALID_SORT_DIR", "sortDir must be asc or desc")
        if tsic and not TSIC_PATTERN.match(tsic):
            raise ValidationError("INVALID_TSIC", "TSIC must be a 5-digit number")
        return cls(
            limit=limit,
            cursor=cursor or None,
            sort_by=sort_by,
            sort_dir=sort_dir,
            province=province or None,
            tag_key=tag_key or None,
            tsic=tsic or None,
            q=q.strip() if q and q.strip() else None,
        )


class ListItemPage(CamelModel):
    items: List[ListItemResponse] = []
    next_cursor: Optional[str] = None

    def to_response(self) -> dict:
        """JSON body; ``nextCursor`` is left out on the last page."""
        body = {"items": [item.model_dump(mode="json", by_alias=True) for item in self.items]}
        if self.next_cursor:
            body["nextCursor"] = self.next_cursor
        return body
