"""
User, Organization and RBAC models.
Core entities for multi-tenant support; roles carry permission keys.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint

from prospector.models.types import timestamp_field


class Organization(SQLModel, table=True):
    """
    Organization/Tenant model.
    All lists and list items are scoped to an organization.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True)
    domain: Optional[str] = Field(default=None, index=True)

    # Timestamps
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()


class User(SQLModel, table=True):
    """
    User model. Profile data only, credentials live in the identity service.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    organization_id: uuid.UUID = Field(foreign_key="organization.id", index=True)

    email: str = Field(unique=True, index=True)
    full_name: Optional[str] = None
    is_active: bool = Field(default=True)

    # Timestamps
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()


class Role(SQLModel, table=True):
    """Named bundle of permissions, e.g. admin, staff, user."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    # None means a platform-wide role
    organization_id: Optional[uuid.UUID] = Field(default=None, foreign_key="organization.id", index=True)
    name: str = Field(index=True)
    description: Optional[str] = None


class Permission(SQLModel, table=True):
    """Permission key such as ``company-lists:read-org`` or ``company-lists:*``."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    key: str = Field(unique=True, index=True)
    description: Optional[str] = None


class RolePermission(SQLModel, table=True):
    __tablename__ = "role_permission"
    __table_args__ = (UniqueConstraint("role_id", "permission_id"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    role_id: uuid.UUID = Field(foreign_key="role.id", index=True)
    permission_id: uuid.UUID = Field(foreign_key="permission.id", index=True)


class UserRole(SQLModel, table=True):
    __tablename__ = "user_role"
    __table_args__ = (UniqueConstraint("user_id", "role_id"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    role_id: uuid.UUID = Field(foreign_key="role.id", index=True)
    granted_at: datetime = timestamp_field()
