"""
Principal schemas - the resolved caller of a request.
"""
import uuid
from typing import List
from pydantic import BaseModel


class PermissionGrant(BaseModel):
    """A single permission key, e.g. ``company-lists:read-own`` or ``company-lists:*``."""
    key: str


class RoleGrant(BaseModel):
    """A named role and the permissions it carries."""
    name: str
    permissions: List[PermissionGrant] = []


class Principal(BaseModel):
    """Authenticated user scoped to one organization."""
    id: uuid.UUID
    organization_id: uuid.UUID
    roles: List[RoleGrant] = []

    class Config:
        frozen = True
