"""
Company list models.
A list is a saved selection of companies; items are its memberships.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB

from prospector.models.types import optional_timestamp_field, timestamp_field


ITEM_STATUSES = ("new", "contacted", "qualified", "converted", "rejected")


class CompanyList(SQLModel, table=True):
    """
    Saved list of companies owned by a user within an organization.
    ``total_companies`` mirrors the number of item rows and is only changed
    in the same transaction as the items.
    """
    __tablename__ = "company_list"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    organization_id: uuid.UUID = Field(foreign_key="organization.id", index=True)
    owner_user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    name: str = Field(index=True)
    description: Optional[str] = None

    # Sharing
    visibility: str = Field(default="private", index=True)  # private, team, organization, public
    is_shared: bool = Field(default=False)

    # Denormalized membership count
    total_companies: int = Field(default=0)

    # Smart lists (recompute happens elsewhere)
    is_smart_list: bool = Field(default=False)
    smart_criteria: dict = Field(default_factory=dict, sa_column=Column(JSON().with_variant(JSONB, "postgresql")))
    last_refreshed_at: Optional[datetime] = optional_timestamp_field()

    # Timestamps
    last_activity_at: datetime = timestamp_field()
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()


class CompanyListItem(SQLModel, table=True):
    """
    Membership of a company in a list. ``(list_id, company_id)`` is unique.
    """
    __tablename__ = "company_list_item"
    __table_args__ = (
        UniqueConstraint("list_id", "company_id", name="uq_company_list_item_list_company"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    list_id: uuid.UUID = Field(foreign_key="company_list.id", index=True)
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)

    note: Optional[str] = None
    position: Optional[int] = Field(default=None, index=True)

    # Qualification
    lead_score: float = Field(default=0)
    score_breakdown: dict = Field(default_factory=dict, sa_column=Column(JSON().with_variant(JSONB, "postgresql")))
    score_calculated_at: Optional[datetime] = optional_timestamp_field()
    status: str = Field(default="new", index=True)  # new, contacted, qualified, converted, rejected
    status_changed_at: datetime = timestamp_field()

    # Provenance
    added_at: datetime = timestamp_field(index=True)
    added_by_user_id: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id")
