"""Administrative endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from progresslens.db.base import StorageHandle
from progresslens.guards.authorization import require_admin, resolve_user
from progresslens.http.deps import get_identity, get_storage, parse_body
from progresslens.http.envelope import ok
from progresslens.logic.identity import Identity
from progresslens.logic.session_views import user_view
from progresslens.logic.users import assign_role
from progresslens.models.users import AssignRoleBody


router = APIRouter()


@router.post("/admin/assign-role", summary="Promote a user by one role tier", operation_id="assignRole")
def assign_role_route(
    body: Any = Body(default=None),
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    require_admin(resolve_user(storage, identity))
    payload = parse_body(AssignRoleBody, body)
    return ok(user_view(assign_role(storage, payload.id, payload.new_role)))


__all__ = ["router"]
