"""Authorization guard.

Resolves the verified identity into an application user and checks role and
ownership before a mutation is attempted. The guard only reads; every denial
is logged at INFO with the user and resource ids for auditing and raised as a
typed domain error.
"""

from __future__ import annotations

import logging
from typing import Tuple

from sqlalchemy.engine import RowMapping

from progresslens.db.base import StorageHandle
from progresslens.logic import repository_questions as questions
from progresslens.logic import repository_sessions as sessions
from progresslens.logic.errors import GuestNotAllowed, InsufficientRole, NotFound, OwnershipViolation
from progresslens.logic.identity import Identity
from progresslens.logic.repository_users import try_get_user

logger = logging.getLogger(__name__)

ROLE_RANK = {"STUDENT": 0, "TEACHER": 1, "ADMIN": 2}


def resolve_user(handle: StorageHandle, identity: Identity) -> RowMapping:
    user = try_get_user(handle, identity.subject_id)
    if user is None:
        logger.info("guard.denied reason=unknown_user subject=%s", identity.subject_id)
        raise NotFound("user", identity.subject_id)
    return user


def _require_role(user: RowMapping, required: str) -> RowMapping:
    role = str(user["role"])
    if ROLE_RANK.get(role, -1) < ROLE_RANK[required]:
        logger.info(
            "guard.denied reason=insufficient_role user_id=%s role=%s required=%s",
            user["id"],
            role,
            required,
        )
        raise InsufficientRole(str(user["id"]), str(user["display_name"]), role, required)
    return user


def require_teacher(user: RowMapping) -> RowMapping:
    """TEACHER or ADMIN may act on teacher-level resources."""
    return _require_role(user, "TEACHER")


def require_admin(user: RowMapping) -> RowMapping:
    return _require_role(user, "ADMIN")


def require_not_guest(user: RowMapping) -> RowMapping:
    if bool(user["is_guest"]):
        logger.info("guard.denied reason=guest user_id=%s", user["id"])
        raise GuestNotAllowed(str(user["id"]), str(user["display_name"]))
    return user


def _require_owner(user: RowMapping, resource: str, resource_id: str, owner_id: str) -> None:
    if str(user["id"]) != owner_id:
        logger.info(
            "guard.denied reason=not_owner user_id=%s %s_id=%s owner_id=%s",
            user["id"],
            resource,
            resource_id,
            owner_id,
        )
        raise OwnershipViolation(str(user["id"]), str(user["display_name"]), resource, resource_id)


def authorize_session(handle: StorageHandle, identity: Identity, session_id: str) -> Tuple[RowMapping, RowMapping]:
    """Return ``(user, session)`` when the caller is the session's teacher."""
    user = require_teacher(resolve_user(handle, identity))
    session = sessions.get_session(handle, session_id)
    _require_owner(user, "session", session_id, str(session["teacher_id"]))
    return user, session


def authorize_question(handle: StorageHandle, identity: Identity, question_id: str) -> Tuple[RowMapping, RowMapping]:
    user = require_teacher(resolve_user(handle, identity))
    question = questions.get_question(handle, question_id)
    _require_owner(user, "question", question_id, str(question["teacher_id"]))
    return user, question


def authorize_option(handle: StorageHandle, identity: Identity, option_id: str) -> Tuple[RowMapping, RowMapping]:
    user = require_teacher(resolve_user(handle, identity))
    option = questions.get_option(handle, option_id)
    _require_owner(user, "option", option_id, str(option["teacher_id"]))
    return user, option


__all__ = [
    "ROLE_RANK",
    "authorize_option",
    "authorize_question",
    "authorize_session",
    "require_admin",
    "require_not_guest",
    "require_teacher",
    "resolve_user",
]
