"""Role policy: who may view, edit, delete and assign roles to whom.

Every predicate takes records exposing ``id`` and ``role`` (a :class:`Role`).
Roles are normalized when records are loaded, so nothing here parses text.
A missing actor is never allowed anything.
"""
from __future__ import annotations

from typing import Optional, Protocol

from invtrack.domain.roles import Role


class HasRole(Protocol):
    id: int
    role: Role


def has_elevated_access(user: Optional[HasRole]) -> bool:
    if user is None:
        return False
    return user.role in (Role.MANAGER, Role.ADMIN)


def has_admin_access(user: Optional[HasRole]) -> bool:
    if user is None:
        return False
    return user.role is Role.ADMIN


def can_manage(actor: Optional[HasRole], target: HasRole) -> bool:
    if actor is None:
        return False
    if actor.role is Role.ADMIN:
        return True
    if actor.role is Role.MANAGER:
        return target.role not in (Role.MANAGER, Role.ADMIN)
    return False


def can_delete(actor: Optional[HasRole], target: HasRole) -> bool:
    if actor is None or actor.id == target.id:
        return False
    return can_manage(actor, target)


def can_edit(actor: Optional[HasRole], target: HasRole) -> bool:
    if actor is None:
        return False
    if actor.id == target.id:
        return True
    if actor.role is Role.ADMIN:
        return True
    if actor.role is Role.MANAGER:
        return target.role is not Role.ADMIN
    return False


def available_roles(actor: Optional[HasRole]) -> frozenset[Role]:
    if actor is None:
        return frozenset()
    if actor.role is Role.ADMIN:
        return frozenset({Role.EMPLOYEE, Role.MANAGER, Role.ADMIN})
    if actor.role is Role.MANAGER:
        return frozenset({Role.EMPLOYEE, Role.MANAGER})
    return frozenset({Role.EMPLOYEE})
