"""Learning session data access helpers.

Encapsulates SQL for sessions and enrollments so route handlers and the
engines stay free of persistence details.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Sequence, Set

from sqlalchemy.engine import RowMapping

from progresslens.db.base import StorageHandle
from progresslens.logic.errors import NotFound

logger = logging.getLogger(__name__)

_SESSION_COLUMNS = (
    "id, title, access_code, teacher_id, is_active, allow_guest_enrollment, "
    "session_order, created_at, updated_at"
)

# Columns callers may change through update_session.
UPDATABLE_SESSION_FIELDS = ("title", "is_active", "allow_guest_enrollment")


def get_session(handle: StorageHandle, session_id: str) -> RowMapping:
    row = handle.fetch_one(
        f"SELECT {_SESSION_COLUMNS} FROM learning_sessions WHERE id = :sid",
        {"sid": session_id},
    )
    if row is None:
        raise NotFound("session", session_id)
    return row


def get_session_by_access_code(handle: StorageHandle, access_code: str) -> RowMapping:
    row = handle.fetch_one(
        f"SELECT {_SESSION_COLUMNS} FROM learning_sessions WHERE access_code = :code",
        {"code": access_code},
    )
    if row is None:
        raise NotFound("session", access_code)
    return row


def list_sessions_for_teacher(handle: StorageHandle, teacher_id: str) -> Sequence[RowMapping]:
    return handle.fetch_all(
        """
        SELECT s.id, s.title, s.access_code, s.teacher_id, s.is_active, s.allow_guest_enrollment,
               s.session_order, s.created_at, s.updated_at,
               (SELECT COUNT(*) FROM questions q WHERE q.session_id = s.id) AS questions_count,
               (SELECT COUNT(*) FROM session_enrollments e WHERE e.session_id = s.id) AS enrollment_count
        FROM learning_sessions s
        WHERE s.teacher_id = :tid
        ORDER BY s.session_order ASC
        """,
        {"tid": teacher_id},
    )


def existing_access_codes(handle: StorageHandle, candidates: Iterable[str]) -> Set[str]:
    codes = list(candidates)
    if not codes:
        return set()
    params = {f"c{i}": code for i, code in enumerate(codes)}
    placeholders = ", ".join(f":{k}" for k in params)
    rows = handle.fetch_all(
        f"SELECT access_code FROM learning_sessions WHERE access_code IN ({placeholders})",
        params,
    )
    return {str(r["access_code"]) for r in rows}


def insert_session(
    handle: StorageHandle,
    *,
    session_id: str,
    teacher_id: str,
    title: str,
    access_code: str,
    session_order: int,
    is_active: bool = True,
    allow_guest_enrollment: bool = False,
) -> None:
    handle.execute(
        """
        INSERT INTO learning_sessions (
            id, title, access_code, teacher_id, is_active, allow_guest_enrollment, session_order
        )
        VALUES (:sid, :title, :code, :tid, :active, :guests, :ord)
        """,
        {
            "sid": session_id,
            "title": title,
            "code": access_code,
            "tid": teacher_id,
            "active": bool(is_active),
            "guests": bool(allow_guest_enrollment),
            "ord": int(session_order),
        },
    )


def update_session(handle: StorageHandle, session_id: str, changes: Dict[str, Any]) -> int:
    fields = [f for f in UPDATABLE_SESSION_FIELDS if f in changes]
    if not fields:
        return 0
    assignments = ", ".join(f"{f} = :{f}" for f in fields)
    params = {f: changes[f] for f in fields}
    params["sid"] = session_id
    return handle.execute(
        f"UPDATE learning_sessions SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = :sid",
        params,
    )


def touch_session(handle: StorageHandle, session_id: str) -> None:
    handle.execute(
        "UPDATE learning_sessions SET updated_at = CURRENT_TIMESTAMP WHERE id = :sid",
        {"sid": session_id},
    )


def delete_session(handle: StorageHandle, session_id: str) -> int:
    return handle.execute("DELETE FROM learning_sessions WHERE id = :sid", {"sid": session_id})


def is_enrolled(handle: StorageHandle, session_id: str, student_id: str) -> bool:
    row = handle.fetch_one(
        "SELECT 1 AS hit FROM session_enrollments WHERE session_id = :sid AND student_id = :uid",
        {"sid": session_id, "uid": student_id},
    )
    return row is not None


def enroll(handle: StorageHandle, session_id: str, student_id: str) -> None:
    handle.execute(
        "INSERT INTO session_enrollments (session_id, student_id) VALUES (:sid, :uid)",
        {"sid": session_id, "uid": student_id},
    )


def list_enrolled_sessions(handle: StorageHandle, student_id: str) -> List[RowMapping]:
    rows = handle.fetch_all(
        """
        SELECT s.id, s.title, s.access_code, s.is_active, u.display_name AS teacher_name, e.enrolled_at
        FROM session_enrollments e
        JOIN learning_sessions s ON s.id = e.session_id
        JOIN users u ON u.id = s.teacher_id
        WHERE e.student_id = :uid
        ORDER BY e.enrolled_at DESC
        """,
        {"uid": student_id},
    )
    return list(rows)


__all__ = [
    "UPDATABLE_SESSION_FIELDS",
    "delete_session",
    "enroll",
    "existing_access_codes",
    "get_session",
    "get_session_by_access_code",
    "insert_session",
    "is_enrolled",
    "list_enrolled_sessions",
    "list_sessions_for_teacher",
    "touch_session",
    "update_session",
]
