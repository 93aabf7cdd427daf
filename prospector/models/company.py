"""
Company registry models.
Companies are referenced by list items; tags and TSIC classifications
back the list item filters.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from prospector.models.types import timestamp_field


class Company(SQLModel, table=True):
    """
    Registered company. Scoped to an organization when privately imported,
    shared across tenants when ``organization_id`` is None.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    organization_id: Optional[uuid.UUID] = Field(default=None, foreign_key="organization.id", index=True)

    # Names
    name_en: str = Field(index=True)
    name_th: Optional[str] = None
    registration_no: Optional[str] = Field(default=None, index=True)

    # Attributes used for scoring and filtering
    province: Optional[str] = Field(default=None, index=True)
    company_size: Optional[str] = None  # S, M, L
    verification_status: Optional[str] = None  # Active, Needs Verification, Invalid, ...
    industry_key: Optional[str] = Field(default=None, index=True)
    website: Optional[str] = None

    # Timestamps
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()


class CompanyTag(SQLModel, table=True):
    __tablename__ = "company_tag"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)
    tag_key: str = Field(index=True)
    name: Optional[str] = None


class CompanyClassification(SQLModel, table=True):
    """TSIC industry classification (5 digit code)."""
    __tablename__ = "company_classification"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)
    tsic: str = Field(index=True)
    title_en: Optional[str] = None
    is_primary: bool = Field(default=False)
