"""Permission flags and the ownership-or-admin rule.

Every user carries a fixed set of capability flags stored as one integer
bitset. Flags gate whole endpoints (see `auth.require_permissions`);
`has_ownership_or_admin` gates individual resources inside the handlers.
"""

import enum
from typing import Dict, Mapping, Optional

from .errors import AuthorizationError, ErrorMessages


class Permission(enum.IntFlag):
    ADMIN = 1
    CREATE_QUESTION = 2
    EDIT_QUESTION = 4
    DELETE_QUESTION = 8
    CREATE_COLLECTION = 16
    EDIT_COLLECTION = 32
    DELETE_COLLECTION = 64
    CREATE_USER = 128
    EDIT_USER = 256
    DELETE_USER = 512


ALL_PERMISSIONS = [p for p in Permission]

# self-service: everything except ADMIN
DEFAULT_PERMISSIONS = Permission(0)
for _perm in ALL_PERMISSIONS:
    if _perm is not Permission.ADMIN:
        DEFAULT_PERMISSIONS |= _perm
del _perm


def permissions_to_map(flags: int) -> Dict[str, bool]:
    """Return the `{name: bool}` form of a bitset, covering every flag."""
    value = Permission(flags)
    return {p.name: bool(value & p) for p in ALL_PERMISSIONS}


def permissions_from_map(mapping: Mapping[str, bool]) -> Permission:
    """Build a bitset from a `{name: bool}` mapping.

    Raises `ValueError` for names outside the enumeration.
    """
    flags = Permission(0)
    for name, granted in mapping.items():
        try:
            perm = Permission[name]
        except KeyError:
            raise ValueError(f"unknown permission: {name}")
        if granted:
            flags |= perm
    return flags


def parse_permission(name: str) -> Permission:
    """Look up a single flag by name, case-insensitively."""
    try:
        return Permission[name.strip().upper()]
    except KeyError:
        raise ValueError(f"unknown permission: {name}")


def has_ownership_or_admin(actor, resource_owner_id: Optional[int]) -> None:
    """Allow the call only for the resource owner or an admin.

    `actor` is any object with `id` and `permissions` (a bitset) attributes,
    normally a `models.User`. Raises `AuthorizationError` otherwise. A
    resource without an owner can only be touched by an admin.
    """
    is_admin = bool(Permission(actor.permissions) & Permission.ADMIN)
    is_owner = resource_owner_id is not None and actor.id == resource_owner_id
    if not (is_admin or is_owner):
        raise AuthorizationError(ErrorMessages.NEED_OWNERSHIP_OR_ADMIN)
