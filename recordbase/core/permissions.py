# File: /recordbase/core/permissions.py | Version: 2.0
from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional

from recordbase.core.errors import ForbiddenError


class Role(str, Enum):
    OWNER = "Owner"
    ADMIN = "Admin"
    MEMBER = "Member"
    GUEST = "Guest"


# Lowest → Highest
ROLE_ORDER = [Role.GUEST, Role.MEMBER, Role.ADMIN, Role.OWNER]
ROLE_RANK = {r: i for i, r in enumerate(ROLE_ORDER)}

# (user_id, workspace_id) -> role name or None when not a member.
RoleLookup = Callable[[str, str], Optional[str]]


def _normalize_role(value: str | Role | None) -> Optional[Role]:
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    try:
        normalized = value.strip().lower()
    except AttributeError:
        return None
    for r in Role:
        if r.value.lower() == normalized:
            return r
    return None


def has_min_role(current: str | Role | None, minimum: Role) -> bool:
    """
    True iff the caller holds a role AND its rank >= minimum.
    """
    resolved = _normalize_role(current)
    if resolved is None:
        return False
    return ROLE_RANK[resolved] >= ROLE_RANK[minimum]


def require_role(
    current: str | Role | None,
    minimum: Role,
    message: Optional[str] = None,
) -> Role:
    """
    Enforce that the caller has at least `minimum` role. Raises ForbiddenError if not.
    Returns the resolved Role on success.
    """
    resolved = _normalize_role(current)
    if resolved is None or ROLE_RANK[resolved] < ROLE_RANK[minimum]:
        raise ForbiddenError(
            message or f"Requires role '{minimum.value}' or higher."
        )
    return resolved


class RoleAuthorizer:
    """
    Authorization hook for the record query path.

    Membership itself lives outside this package; `role_lookup` answers
    "which role does this user hold in this workspace".

    Example:
        authorize = RoleAuthorizer(lookup, user_id="u1", minimum=Role.GUEST)
        service.list_records(schema, query, authorize=authorize)
    """

    def __init__(self, role_lookup: RoleLookup, *, user_id: str, minimum: Role = Role.GUEST):
        self.role_lookup = role_lookup
        self.user_id = user_id
        self.minimum = minimum

    def __call__(self, schema: Any) -> Role:
        workspace_id = str(getattr(schema, "workspace_id", "") or "")
        current = self.role_lookup(self.user_id, workspace_id)
        return require_role(
            current,
            self.minimum,
            message=f"Requires role '{self.minimum.value}' or higher in workspace {workspace_id}.",
        )


# ----- Convenience checks aligned with the role matrix -----

def can_manage_schema(current: str | Role | None) -> bool:
    # Admin+ can add/remove properties and views
    return has_min_role(current, Role.ADMIN)


def can_edit_records(current: str | Role | None) -> bool:
    # Member+ can create/edit records
    return has_min_role(current, Role.MEMBER)


def can_read_records(current: str | Role | None) -> bool:
    # Any membership grants read
    return _normalize_role(current) is not None
