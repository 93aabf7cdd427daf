"""
API dependencies - shared across all routes.
"""
import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from prospector.database import get_session
from prospector.core.security import verify_token
from prospector.core.exceptions import UnauthorizedError
from prospector.repositories.user_repo import UserRepository
from prospector.schemas.principal import Principal


bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session)
) -> Principal:
    """Resolve the caller from the bearer token into a Principal with its roles."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()

    payload = verify_token(credentials.credentials, "access")
    if not payload:
        raise UnauthorizedError("Could not validate credentials")

    try:
        user_id = uuid.UUID(str(payload.get("user_id")))
    except ValueError:
        raise UnauthorizedError("Could not validate credentials")

    user_repo = UserRepository(session)
    user = await user_repo.get(user_id)

    if not user:
        raise UnauthorizedError("User not found")

    if not user.is_active:
        raise UnauthorizedError("User account is deactivated")

    roles = await user_repo.get_role_grants(user.id)
    return Principal(id=user.id, organization_id=user.organization_id, roles=roles)
