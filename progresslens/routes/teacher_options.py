"""Teacher endpoints for individual options."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from progresslens.db.base import StorageHandle
from progresslens.guards.authorization import authorize_option
from progresslens.http.deps import get_identity, get_storage, parse_body, require_matching_id
from progresslens.http.envelope import ok
from progresslens.logic.errors import NotFound
from progresslens.logic.identity import Identity
from progresslens.logic.questions_write import delete_option, update_option
from progresslens.logic.repository_questions import get_option
from progresslens.logic.session_views import option_view
from progresslens.models.authoring import OPTION_ATTRIBUTES


router = APIRouter()


@router.put("/teacher/options/{id}/{attr}", summary="Update one option attribute", operation_id="updateOption")
def update_option_route(
    id: str,
    attr: str,
    body: Any = Body(default=None),
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    authorize_option(storage, identity, id)
    if attr not in OPTION_ATTRIBUTES:
        raise NotFound("option attribute", attr)
    model, column = OPTION_ATTRIBUTES[attr]
    payload = parse_body(model, body)
    require_matching_id(id, payload.id)
    update_option(storage, id, {column: getattr(payload, column)})
    return ok(option_view(get_option(storage, id)))


@router.delete("/teacher/options/{id}", summary="Delete an option", operation_id="deleteOption")
def delete_option_route(
    id: str,
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    authorize_option(storage, identity, id)
    delete_option(storage, id)
    return ok({"id": id})


__all__ = ["router"]
