"""Teacher endpoints for questions and their option sets."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends

from progresslens.config import get_config
from progresslens.db.base import StorageHandle
from progresslens.guards.authorization import authorize_question, authorize_session, require_teacher, resolve_user
from progresslens.http.deps import get_identity, get_storage, parse_body, require_matching_id
from progresslens.http.envelope import ok
from progresslens.logic.duplication import duplicate_question
from progresslens.logic.errors import NotFound
from progresslens.logic.identity import Identity
from progresslens.logic.order_sequences import reorder_options
from progresslens.logic.questions_write import add_option, create_question, delete_question, update_question
from progresslens.logic.session_views import option_view, question_for_edit
from progresslens.logic import repository_questions
from progresslens.models.authoring import QUESTION_ATTRIBUTES, AddOptionBody, AddQuestionBody, OptionsOrderBody


router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/teacher/questions/new", summary="Add a question to a session", operation_id="createQuestion")
def create_question_route(
    body: Any = Body(default=None),
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    # The owning session travels in the body; authorize on it before the
    # rest of the payload is validated.
    require_teacher(resolve_user(storage, identity))
    if isinstance(body, dict):
        raw_session_id = body.get("sessionId", body.get("session_id"))
        if isinstance(raw_session_id, str) and raw_session_id:
            authorize_session(storage, identity, raw_session_id)
    payload = parse_body(AddQuestionBody, body)
    authorize_session(storage, identity, payload.session_id)
    question_id = create_question(
        storage,
        payload.session_id,
        get_config().authoring,
        order=payload.order,
        title=payload.title,
    )
    return ok(question_for_edit(storage, question_id), status=201)


@router.put(
    "/teacher/questions/{id}/options-order",
    summary="Reorder all options of a question",
    operation_id="reorderOptions",
)
def reorder_options_route(
    id: str,
    body: Any = Body(default=None),
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    authorize_question(storage, identity, id)
    payload = parse_body(OptionsOrderBody, body)
    applied = reorder_options(storage, id, [(item.option_id, item.order) for item in payload.data])
    data = [{"optionId": oid, "order": order} for oid, order in sorted(applied.items(), key=lambda kv: kv[1])]
    return ok({"questionId": id, "options": data})


@router.post(
    "/teacher/questions/{id}/duplicate",
    summary="Duplicate a question with its options",
    operation_id="duplicateQuestion",
)
def duplicate_question_route(
    id: str,
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    authorize_question(storage, identity, id)
    duplicate_question(storage, id)
    return ok(None)


@router.post("/teacher/questions/{id}/options", summary="Append an option", operation_id="addOption")
def add_option_route(
    id: str,
    body: Any = Body(default=None),
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    authorize_question(storage, identity, id)
    payload = parse_body(AddOptionBody, body if body is not None else {})
    option_id = add_option(storage, id, get_config().authoring, title=payload.title)
    return ok(option_view(repository_questions.get_option(storage, option_id)), status=201)


@router.put("/teacher/questions/{id}/{attr}", summary="Update one question attribute", operation_id="updateQuestion")
def update_question_route(
    id: str,
    attr: str,
    body: Any = Body(default=None),
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    authorize_question(storage, identity, id)
    if attr not in QUESTION_ATTRIBUTES:
        raise NotFound("question attribute", attr)
    model, column = QUESTION_ATTRIBUTES[attr]
    payload = parse_body(model, body)
    require_matching_id(id, payload.id)
    update_question(storage, id, {column: getattr(payload, column)})
    return ok(question_for_edit(storage, id))


@router.delete("/teacher/questions/{id}", summary="Delete a question", operation_id="deleteQuestion")
def delete_question_route(
    id: str,
    identity: Identity = Depends(get_identity),
    storage: StorageHandle = Depends(get_storage),
):
    authorize_question(storage, identity, id)
    delete_question(storage, id)
    return ok({"id": id})


__all__ = ["router"]
