from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.core.permissions import allowed_operations, parse_role
from app.core.security import CurrentUser, get_current_user


router = APIRouter()


class MeResponse(BaseModel):
    id: str
    auth_user_id: str
    email: str
    role: str
    role_recognized: bool
    agency_id: str | None = None
    permissions: list[str]


@router.get("/auth/me", response_model=MeResponse)
async def me(current_user: CurrentUser = Depends(get_current_user)):
    return MeResponse(
        id=current_user.id,
        auth_user_id=current_user.auth_user_id,
        email=current_user.email,
        role=current_user.role,
        role_recognized=parse_role(current_user.role) is not None,
        agency_id=current_user.agency_id,
        permissions=allowed_operations(current_user.role),
    )
