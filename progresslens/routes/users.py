"""Signed-in user endpoints: first login and profile."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from progresslens.db.base import StorageHandle
from progresslens.guards.authorization import resolve_user
from progresslens.http.deps import get_identity, get_storage, parse_body
from progresslens.http.envelope import ok
from progresslens.logic.identity import Identity
from progresslens.logic.session_views import user_view
from progresslens.logic.users import finalize_login, update_profile
from progresslens.models.users import UpdateProfileBody


router = APIRouter()


@router.get("/user/finalize-login", summary="Create the app user on first login", operation_id="finalizeLogin")
def finalize_login_route(
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    result = finalize_login(storage, identity)
    return ok(
        {
            "userId": result.user_id,
            "displayName": result.display_name,
            "role": result.role,
            "created": result.created,
            "redirectPath": result.redirect_path,
        }
    )


@router.get("/user/profile", summary="Get the caller's profile", operation_id="getProfile")
def get_profile_route(
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    return ok(user_view(resolve_user(storage, identity)))


@router.put("/user/profile", summary="Update the caller's profile", operation_id="updateProfile")
def update_profile_route(
    body: Any = Body(default=None),
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    user = resolve_user(storage, identity)
    payload = parse_body(UpdateProfileBody, body)
    avatar = payload.avatar_img_key if payload.avatar_img_key is not None else user["avatar_img_key"]
    row = update_profile(storage, str(user["id"]), payload.display_name, avatar)
    return ok(user_view(row))


__all__ = ["router"]
