"""User lifecycle: first login, profile edits, role promotion and enrollment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy.engine import RowMapping

from progresslens.db.base import StorageHandle
from progresslens.logic import repository_sessions as sessions
from progresslens.logic import repository_users as users
from progresslens.logic.errors import DomainRuleViolation, GuestNotAllowed
from progresslens.logic.identity import Identity
from progresslens.logic.transaction import run_in_transaction

logger = logging.getLogger(__name__)

ROLES = ("STUDENT", "TEACHER", "ADMIN")

# The only legal promotions: one tier up, never down, never a no-op.
ROLE_TRANSITIONS: Dict[str, str] = {"STUDENT": "TEACHER", "TEACHER": "ADMIN"}

DASHBOARD_PATHS: Dict[str, str] = {
    "STUDENT": "/student/dashboard",
    "TEACHER": "/teacher/dashboard",
    "ADMIN": "/admin/dashboard",
}


@dataclass(frozen=True)
class LoginResult:
    user_id: str
    display_name: str
    role: str
    created: bool
    redirect_path: str


def _display_name_for(identity: Identity) -> str:
    if identity.email and "@" in identity.email:
        local = identity.email.split("@", 1)[0].strip()
        if local:
            return local
    return identity.subject_id[:8]


def finalize_login(handle: StorageHandle, identity: Identity) -> LoginResult:
    """Ensure an application user exists for ``identity``; first-timers become STUDENTs."""

    def _work(tx: StorageHandle) -> LoginResult:
        existing = users.try_get_user(tx, identity.subject_id)
        if existing is not None:
            role = str(existing["role"])
            return LoginResult(identity.subject_id, str(existing["display_name"]), role, False, DASHBOARD_PATHS[role])
        name = _display_name_for(identity)
        users.create_user(tx, identity.subject_id, name)
        return LoginResult(identity.subject_id, name, "STUDENT", True, DASHBOARD_PATHS["STUDENT"])

    result = run_in_transaction(handle, _work, label="finalize_login")
    if result.created:
        logger.info("user.created user_id=%s", result.user_id)
    return result


def update_profile(
    handle: StorageHandle,
    user_id: str,
    display_name: str,
    avatar_img_key: Optional[str] = None,
) -> RowMapping:
    def _work(tx: StorageHandle) -> RowMapping:
        users.get_user(tx, user_id)
        users.update_profile(tx, user_id, display_name.strip(), avatar_img_key)
        return users.get_user(tx, user_id)

    row = run_in_transaction(handle, _work, label="update_profile")
    logger.info("user.profile_updated user_id=%s", user_id)
    return row


def assign_role(handle: StorageHandle, target_user_id: str, new_role: str) -> RowMapping:
    """Promote ``target_user_id`` by exactly one tier.

    Downgrades, tier skips, unknown roles and assignments to the current role
    raise ``DomainRuleViolation``. The caller's own ADMIN check happens in the
    authorization guard.
    """

    def _work(tx: StorageHandle) -> RowMapping:
        target = users.get_user(tx, target_user_id)
        current = str(target["role"])
        if ROLE_TRANSITIONS.get(current) != new_role:
            raise DomainRuleViolation(
                f"Role change {current} -> {new_role} is not allowed",
                {"userId": target_user_id, "currentRole": current, "requestedRole": new_role},
            )
        users.set_role(tx, target_user_id, new_role)
        return users.get_user(tx, target_user_id)

    row = run_in_transaction(handle, _work, label="assign_role")
    logger.info("user.role_assigned user_id=%s role=%s", target_user_id, new_role)
    return row


def enroll_by_access_code(handle: StorageHandle, user: RowMapping, access_code: str) -> Dict[str, object]:
    """Enroll ``user`` into the session behind ``access_code``.

    Enrolling twice is a no-op that reports ``alreadyEnrolled``.
    """

    def _work(tx: StorageHandle) -> Dict[str, object]:
        session = sessions.get_session_by_access_code(tx, access_code)
        session_id = str(session["id"])
        if not bool(session["is_active"]):
            raise DomainRuleViolation(
                "The session is not accepting enrollments",
                {"sessionId": session_id, "accessCode": access_code},
                code="SESSION_NOT_ACTIVE",
            )
        if bool(user["is_guest"]) and not bool(session["allow_guest_enrollment"]):
            raise GuestNotAllowed(str(user["id"]), str(user["display_name"]))
        already = sessions.is_enrolled(tx, session_id, str(user["id"]))
        if not already:
            sessions.enroll(tx, session_id, str(user["id"]))
        return {"sessionId": session_id, "title": session["title"], "alreadyEnrolled": already}

    result = run_in_transaction(handle, _work, label="enroll")
    logger.info(
        "session.enrolled session_id=%s user_id=%s already=%s",
        result["sessionId"],
        user["id"],
        result["alreadyEnrolled"],
    )
    return result


__all__ = [
    "DASHBOARD_PATHS",
    "LoginResult",
    "ROLES",
    "ROLE_TRANSITIONS",
    "assign_role",
    "enroll_by_access_code",
    "finalize_login",
    "update_profile",
]
