"""
User and role repositories.
"""
import uuid
from typing import List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from prospector.models.user import User, Role, Permission, RolePermission, UserRole
from prospector.repositories.base import BaseRepository
from prospector.schemas.principal import PermissionGrant, RoleGrant


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_role_grants(self, user_id: uuid.UUID) -> List[RoleGrant]:
        """Load the roles of a user together with their permission keys."""
        query = (
            select(Role, Permission)
            .join(UserRole, UserRole.role_id == Role.id)
            .outerjoin(RolePermission, RolePermission.role_id == Role.id)
            .outerjoin(Permission, Permission.id == RolePermission.permission_id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.name, Permission.key)
        )
        result = await self.session.exec(query)

        grants = {}
        for role, permission in result.all():
            grant = grants.setdefault(role.id, RoleGrant(name=role.name, permissions=[]))
            if permission is not None:
                grant.permissions.append(PermissionGrant(key=permission.key))
        return list(grants.values())
