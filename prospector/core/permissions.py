"""
Permission resolution for role-based access control.

A permission key granted to a role is one of three kinds:

* ``*`` grants everything,
* ``namespace:*`` grants every key starting with ``namespace:``,
* anything else grants exactly that key.
"""
from enum import Enum
from typing import Iterator, Tuple

from prospector.schemas.principal import Principal

FULL_ACCESS = "*"
PREFIX_SUFFIX = ":*"


class GrantKind(str, Enum):
    FULL = "full"
    PREFIX = "prefix"
    EXACT = "exact"


def classify_grant(granted_key: str) -> Tuple[GrantKind, str]:
    """Split a granted key into its kind and the operand it is matched with."""
    if granted_key == FULL_ACCESS:
        return GrantKind.FULL, ""
    if granted_key.endswith(PREFIX_SUFFIX):
        # keep the trailing ':' so "a:*" does not match "ab:c"
        return GrantKind.PREFIX, granted_key[:-1]
    return GrantKind.EXACT, granted_key


def grant_matches(granted_key: str, required_key: str) -> bool:
    """Check one granted key against the required key."""
    kind, operand = classify_grant(granted_key)
    if kind is GrantKind.FULL:
        return True
    if kind is GrantKind.PREFIX:
        return required_key.startswith(operand)
    return granted_key == required_key


def iter_permission_keys(principal: Principal) -> Iterator[str]:
    for role in principal.roles or []:
        for permission in role.permissions or []:
            yield permission.key


def has_permission(principal: Principal, key: str) -> bool:
    """
    Return True if any permission of any role of the principal grants ``key``.

    Pure and order independent: the result only depends on the set of
    granted keys.
    """
    return any(grant_matches(granted, key) for granted in iter_permission_keys(principal))
