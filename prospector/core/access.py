"""
Company list access guard.

Single place deciding whether a principal may read, update or delete a list.
Endpoints and services never re-implement these checks.
"""
from enum import Enum
from typing import NamedTuple, Protocol
import uuid

from prospector.core.exceptions import ForbiddenError, NotFoundError
from prospector.core.permissions import has_permission
from prospector.schemas.principal import Principal


class ListAction(str, Enum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Visibility(str, Enum):
    PRIVATE = "private"
    TEAM = "team"
    ORGANIZATION = "organization"
    PUBLIC = "public"


# Permission keys
ALL_ACCESS = "*"
LISTS_ALL = "company-lists:*"
LISTS_READ_PUBLIC = "company-lists:read-public"
LISTS_READ_ORG = "company-lists:read-org"
LISTS_UPDATE_ANY = "company-lists:update-any"
LISTS_DELETE_ANY = "company-lists:delete-any"

_ELEVATED_PERMISSION = {
    ListAction.UPDATE: LISTS_UPDATE_ANY,
    ListAction.DELETE: LISTS_DELETE_ANY,
}


class ReadGrants(NamedTuple):
    """Which lists beyond its own a principal may read."""
    everything: bool
    public: bool
    organization: bool


class GuardedList(Protocol):
    id: uuid.UUID
    organization_id: uuid.UUID
    owner_user_id: uuid.UUID
    visibility: str


def can_access_list(principal: Principal, company_list: GuardedList, action: ListAction) -> bool:
    """Decide whether ``principal`` may perform ``action`` on ``company_list``."""
    action = ListAction(action)

    if company_list.owner_user_id == principal.id:
        return True

    if has_permission(principal, ALL_ACCESS) or has_permission(principal, LISTS_ALL):
        return True

    if action is ListAction.READ:
        if company_list.visibility == Visibility.PUBLIC.value and has_permission(principal, LISTS_READ_PUBLIC):
            return True
        if (
            company_list.visibility == Visibility.ORGANIZATION.value
            and has_permission(principal, LISTS_READ_ORG)
            and principal.organization_id == company_list.organization_id
        ):
            return True
        return False

    return has_permission(principal, _ELEVATED_PERMISSION[action])


def read_grants(principal: Principal) -> ReadGrants:
    """
    Read rights of ``principal`` resolved once, for queries that filter many
    lists in the database. Mirrors the read branch of ``can_access_list``.
    """
    return ReadGrants(
        everything=has_permission(principal, ALL_ACCESS) or has_permission(principal, LISTS_ALL),
        public=has_permission(principal, LISTS_READ_PUBLIC),
        organization=has_permission(principal, LISTS_READ_ORG),
    )


def ensure_can_read(principal: Principal, company_list: GuardedList) -> None:
    """Raise NOT_FOUND (not FORBIDDEN) so hidden lists stay indistinguishable from missing ones."""
    if not can_access_list(principal, company_list, ListAction.READ):
        raise NotFoundError("Company list", str(company_list.id))


def ensure_can_modify(principal: Principal, company_list: GuardedList, action: ListAction = ListAction.UPDATE) -> None:
    if not can_access_list(principal, company_list, action):
        raise ForbiddenError("You do not have permission to modify this list")
