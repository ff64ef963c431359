from __future__ import annotations

import enum
from typing import Iterable

from attendance_api.core.exceptions import PermissionDenied
from attendance_api.db.models import ROLE_ADMIN, ROLE_SUPERADMIN, User


class Capability(str, enum.Enum):
    SELF = "self"
    SAME_TENANT_ADMIN = "same_tenant_admin"
    SUPERADMIN = "superadmin"


ANYONE_RELATED = frozenset({Capability.SELF, Capability.SAME_TENANT_ADMIN, Capability.SUPERADMIN})
ADMINS = frozenset({Capability.SAME_TENANT_ADMIN, Capability.SUPERADMIN})
SUPERADMIN_ONLY = frozenset({Capability.SUPERADMIN})

_UNSET = object()


def capabilities(actor: User, *, target: User | None = None, company_id=_UNSET) -> set[Capability]:
    """Capabilities ``actor`` holds over ``target`` (a user) or a tenant.

    Without a target user or explicit company the action is assumed to be on
    the actor's own tenant.
    """
    granted: set[Capability] = set()
    if actor.role == ROLE_SUPERADMIN:
        granted.add(Capability.SUPERADMIN)
    if target is not None and target.id == actor.id:
        granted.add(Capability.SELF)

    if target is not None:
        tenant = target.company_id
    elif company_id is not _UNSET:
        tenant = company_id
    else:
        tenant = actor.company_id
    if actor.role == ROLE_ADMIN and actor.company_id is not None and actor.company_id == tenant:
        granted.add(Capability.SAME_TENANT_ADMIN)
    return granted


def authorize(
    actor: User,
    allowed: Iterable[Capability],
    *,
    target: User | None = None,
    company_id=_UNSET,
    message: str | None = None,
) -> Capability:
    held = capabilities(actor, target=target, company_id=company_id)
    allowed = set(allowed)
    for capability in Capability:
        if capability in allowed and capability in held:
            return capability
    raise PermissionDenied(message)
