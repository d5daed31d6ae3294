from __future__ import annotations

import enum
from typing import Callable

from fastapi import Depends, HTTPException

from app.core.security import CurrentUser, get_current_user


class Role(str, enum.Enum):
    PLATFORM_ADMIN = "platform_admin"
    AGENCY_ADMIN = "agency_admin"
    AGENCY_USER = "agency_user"
    CLIENT_ADMIN = "client_admin"
    CLIENT_USER = "client_user"


ALL_ROLES: frozenset[Role] = frozenset(Role)

# Single source of truth for who may call what.
OPERATION_ROLES: dict[str, frozenset[Role]] = {
    "import.preview": ALL_ROLES,
    "import.templates.read": ALL_ROLES,
    "import.types.read": ALL_ROLES,
}


def parse_role(value: str | None) -> Role | None:
    raw = str(value or "").strip().lower()
    if not raw:
        return None
    try:
        return Role(raw)
    except ValueError:
        return None


def is_allowed(role: str | None, operation: str) -> bool:
    allowed = OPERATION_ROLES.get(operation)
    if allowed is None:
        raise KeyError(f"Unknown operation: {operation}")
    parsed = parse_role(role)
    return parsed is not None and parsed in allowed


def allowed_operations(role: str | None) -> list[str]:
    parsed = parse_role(role)
    if parsed is None:
        return []
    return sorted(op for op, roles in OPERATION_ROLES.items() if parsed in roles)


def authorize(user: CurrentUser, operation: str) -> None:
    if not (user.role or "").strip():
        raise HTTPException(status_code=403, detail="No user role found")
    if not is_allowed(user.role, operation):
        raise HTTPException(status_code=403, detail="Insufficient permissions")


def require_permission(operation: str) -> Callable[..., CurrentUser]:
    if operation not in OPERATION_ROLES:
        raise KeyError(f"Unknown operation: {operation}")

    def _dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        authorize(user, operation)
        return user

    return _dependency
