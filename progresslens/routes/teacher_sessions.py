"""Teacher endpoints for learning sessions.

Every handler authorizes first and validates the raw body afterwards, so a
caller without rights learns nothing about the payload rules.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends

from progresslens.config import get_config
from progresslens.db.base import StorageHandle
from progresslens.guards.authorization import authorize_session, require_not_guest, require_teacher, resolve_user
from progresslens.http.deps import get_identity, get_storage, parse_body, require_matching_id
from progresslens.http.envelope import ok
from progresslens.logic.duplication import duplicate_session
from progresslens.logic.identity import Identity
from progresslens.logic.order_sequences import reorder_questions
from progresslens.logic.session_views import session_for_edit, teacher_sessions
from progresslens.logic.sessions_write import create_session, delete_session, update_session
from progresslens.models.authoring import CreateSessionBody, QuestionsOrderBody, UpdateSessionBody


router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/teacher/sessions", summary="List the caller's sessions", operation_id="listSessions")
def list_sessions(
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    user = require_teacher(resolve_user(storage, identity))
    return ok(teacher_sessions(storage, str(user["id"])))


@router.post("/teacher/sessions/new", summary="Create a session", operation_id="createSession")
def create_session_route(
    body: Any = Body(default=None),
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    user = require_not_guest(require_teacher(resolve_user(storage, identity)))
    payload = parse_body(CreateSessionBody, body)
    session_id = create_session(storage, str(user["id"]), payload.title, get_config().authoring)
    return ok(session_for_edit(storage, session_id), status=201)


@router.get("/teacher/sessions/{id}", summary="Get a session tree for editing", operation_id="getSessionForEdit")
def get_session_route(
    id: str,
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    authorize_session(storage, identity, id)
    return ok(session_for_edit(storage, id))


@router.put("/teacher/sessions/{id}", summary="Update session settings", operation_id="updateSession")
def update_session_route(
    id: str,
    body: Any = Body(default=None),
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    authorize_session(storage, identity, id)
    payload = parse_body(UpdateSessionBody, body)
    require_matching_id(id, payload.id)
    changes = payload.model_dump(exclude={"id"}, exclude_none=True)
    update_session(storage, id, changes)
    return ok(session_for_edit(storage, id))


@router.delete("/teacher/sessions/{id}", summary="Delete a session", operation_id="deleteSession")
def delete_session_route(
    id: str,
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    user, _ = authorize_session(storage, identity, id)
    require_not_guest(user)
    delete_session(storage, id)
    return ok({"id": id})


@router.put(
    "/teacher/sessions/{id}/questions-order",
    summary="Reorder all questions of a session",
    operation_id="reorderQuestions",
)
def reorder_questions_route(
    id: str,
    body: Any = Body(default=None),
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    authorize_session(storage, identity, id)
    payload = parse_body(QuestionsOrderBody, body)
    applied = reorder_questions(storage, id, [(item.question_id, item.order) for item in payload.data])
    data = [{"questionId": qid, "order": order} for qid, order in sorted(applied.items(), key=lambda kv: kv[1])]
    return ok({"sessionId": id, "questions": data})


@router.post(
    "/teacher/sessions/{id}/duplicate",
    summary="Duplicate a session with its questions and options",
    operation_id="duplicateSession",
)
def duplicate_session_route(
    id: str,
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    authorize_session(storage, identity, id)
    duplicate_session(storage, id)
    return ok(None)


__all__ = ["router"]
