"""Student endpoints: enrollment by access code."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from progresslens.db.base import StorageHandle
from progresslens.guards.authorization import resolve_user
from progresslens.http.deps import get_identity, get_storage
from progresslens.http.envelope import ok
from progresslens.logic.access_codes import is_access_code
from progresslens.logic.errors import ValidationError
from progresslens.logic.identity import Identity
from progresslens.logic.session_views import enrolled_sessions
from progresslens.logic.users import enroll_by_access_code


router = APIRouter()


@router.get("/student/sessions", summary="List sessions the caller is enrolled in", operation_id="listEnrolled")
def list_enrolled_route(
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    user = resolve_user(storage, identity)
    return ok(enrolled_sessions(storage, str(user["id"])))


@router.post(
    "/student/sessions/{code}/enroll",
    summary="Enroll into a session by access code",
    operation_id="enrollByAccessCode",
)
def enroll_route(
    code: str,
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    user = resolve_user(storage, identity)
    if not is_access_code(code):
        raise ValidationError("Access code must look like NNN-NNNN", {"accessCode": code})
    return ok(enroll_by_access_code(storage, user, code))


__all__ = ["router"]
