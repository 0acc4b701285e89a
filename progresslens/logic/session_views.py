"""Read models for the authoring screens.

Rows are shaped into plain dicts with the wire field names used by the API.
SQLite hands booleans back as integers, hence the explicit ``bool()``.
"""

from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy.engine import RowMapping

from progresslens.db.base import StorageHandle
from progresslens.logic import repository_questions as questions
from progresslens.logic import repository_sessions as sessions


def _ts(value: Any) -> Any:
    return value.isoformat() if hasattr(value, "isoformat") else value


def option_view(row: RowMapping) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "questionId": str(row["question_id"]),
        "order": int(row["option_order"]),
        "title": row["title"],
        "description": row["description"] or "",
        "rewardMessage": row["reward_message"] or "",
        "rewardPoint": int(row["reward_point"]),
        "effect": bool(row["effect"]),
    }


def question_view(row: RowMapping, options: List[Dict[str, Any]]) -> Dict[str, Any]:
    default_id = row["default_option_id"]
    return {
        "id": str(row["id"]),
        "sessionId": str(row["session_id"]),
        "order": int(row["question_order"]),
        "title": row["title"],
        "description": row["description"] or "",
        "defaultOptionId": str(default_id) if default_id is not None else None,
        "options": options,
    }


def session_summary(row: RowMapping) -> Dict[str, Any]:
    summary = {
        "id": str(row["id"]),
        "title": row["title"],
        "accessCode": row["access_code"],
        "teacherId": str(row["teacher_id"]),
        "isActive": bool(row["is_active"]),
        "allowGuestEnrollment": bool(row["allow_guest_enrollment"]),
        "order": int(row["session_order"]),
        "createdAt": _ts(row["created_at"]),
        "updatedAt": _ts(row["updated_at"]),
    }
    if "questions_count" in row:
        summary["questionsCount"] = int(row["questions_count"])
        summary["enrollmentCount"] = int(row["enrollment_count"])
    return summary


def session_for_edit(handle: StorageHandle, session_id: str) -> Dict[str, Any]:
    """Return the whole session tree ordered by question and option order."""
    session = sessions.get_session(handle, session_id)
    by_question: Dict[str, List[Dict[str, Any]]] = {}
    for opt in questions.list_options_for_session(handle, session_id):
        by_question.setdefault(str(opt["question_id"]), []).append(option_view(opt))
    tree = session_summary(session)
    tree["questions"] = [
        question_view(q, by_question.get(str(q["id"]), []))
        for q in questions.list_questions(handle, session_id)
    ]
    return tree


def question_for_edit(handle: StorageHandle, question_id: str) -> Dict[str, Any]:
    question = questions.get_question(handle, question_id)
    return question_view(question, [option_view(o) for o in questions.list_options(handle, question_id)])


def teacher_sessions(handle: StorageHandle, teacher_id: str) -> List[Dict[str, Any]]:
    return [session_summary(r) for r in sessions.list_sessions_for_teacher(handle, teacher_id)]


def enrolled_sessions(handle: StorageHandle, student_id: str) -> List[Dict[str, Any]]:
    return [
        {
            "id": str(r["id"]),
            "title": r["title"],
            "accessCode": r["access_code"],
            "isActive": bool(r["is_active"]),
            "teacherName": r["teacher_name"],
            "enrolledAt": _ts(r["enrolled_at"]),
        }
        for r in sessions.list_enrolled_sessions(handle, student_id)
    ]


def user_view(row: RowMapping) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "displayName": row["display_name"],
        "role": row["role"],
        "isGuest": bool(row["is_guest"]),
        "avatarImgKey": row["avatar_img_key"],
    }


__all__ = [
    "enrolled_sessions",
    "option_view",
    "question_for_edit",
    "question_view",
    "session_for_edit",
    "session_summary",
    "teacher_sessions",
    "user_view",
]
