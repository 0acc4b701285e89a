"""Question and option data access helpers.

Keeps SQL for the two lower levels of the hierarchy in one place. Lookups
that guard a mutation also return the owning session's ``teacher_id`` so the
authorization guard can check ownership without a second query.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.engine import RowMapping

from progresslens.db.base import StorageHandle
from progresslens.logic.errors import NotFound

logger = logging.getLogger(__name__)

_QUESTION_COLUMNS = "q.id, q.session_id, q.question_order, q.title, q.description, q.default_option_id"
_OPTION_COLUMNS = (
    "o.id, o.question_id, o.option_order, o.title, o.description, "
    "o.reward_message, o.reward_point, o.effect"
)

UPDATABLE_QUESTION_FIELDS = ("title", "description", "default_option_id")
UPDATABLE_OPTION_FIELDS = ("title", "description", "reward_message", "reward_point", "effect")


def get_question(handle: StorageHandle, question_id: str) -> RowMapping:
    """Return the question row joined with its session's teacher_id."""
    row = handle.fetch_one(
        f"""
        SELECT {_QUESTION_COLUMNS}, s.teacher_id
        FROM questions q JOIN learning_sessions s ON s.id = q.session_id
        WHERE q.id = :qid
        """,
        {"qid": question_id},
    )
    if row is None:
        raise NotFound("question", question_id)
    return row


def list_questions(handle: StorageHandle, session_id: str) -> Sequence[RowMapping]:
    return handle.fetch_all(
        f"SELECT {_QUESTION_COLUMNS} FROM questions q WHERE q.session_id = :sid ORDER BY q.question_order ASC",
        {"sid": session_id},
    )


def insert_question(
    handle: StorageHandle,
    *,
    question_id: str,
    session_id: str,
    order_value: int,
    title: str,
    description: str = "",
) -> None:
    handle.execute(
        """
        INSERT INTO questions (id, session_id, question_order, title, description, default_option_id)
        VALUES (:qid, :sid, :ord, :title, :descr, NULL)
        """,
        {"qid": question_id, "sid": session_id, "ord": int(order_value), "title": title, "descr": description},
    )


def set_default_option(handle: StorageHandle, question_id: str, option_id: Optional[str]) -> None:
    handle.execute(
        "UPDATE questions SET default_option_id = :oid WHERE id = :qid",
        {"oid": option_id, "qid": question_id},
    )


def update_question(handle: StorageHandle, question_id: str, changes: Dict[str, Any]) -> int:
    fields = [f for f in UPDATABLE_QUESTION_FIELDS if f in changes]
    if not fields:
        return 0
    params = {f: changes[f] for f in fields}
    params["qid"] = question_id
    return handle.execute(
        f"UPDATE questions SET {', '.join(f'{f} = :{f}' for f in fields)} WHERE id = :qid",
        params,
    )


def delete_question(handle: StorageHandle, question_id: str) -> int:
    return handle.execute("DELETE FROM questions WHERE id = :qid", {"qid": question_id})


def get_option(handle: StorageHandle, option_id: str) -> RowMapping:
    """Return the option row joined with its question's default and session owner."""
    row = handle.fetch_one(
        f"""
        SELECT {_OPTION_COLUMNS}, q.session_id, q.default_option_id, s.teacher_id
        FROM options o
        JOIN questions q ON q.id = o.question_id
        JOIN learning_sessions s ON s.id = q.session_id
        WHERE o.id = :oid
        """,
        {"oid": option_id},
    )
    if row is None:
        raise NotFound("option", option_id)
    return row


def list_options(handle: StorageHandle, question_id: str) -> Sequence[RowMapping]:
    return handle.fetch_all(
        f"SELECT {_OPTION_COLUMNS} FROM options o WHERE o.question_id = :qid ORDER BY o.option_order ASC",
        {"qid": question_id},
    )


def list_options_for_session(handle: StorageHandle, session_id: str) -> Sequence[RowMapping]:
    return handle.fetch_all(
        f"""
        SELECT {_OPTION_COLUMNS}
        FROM options o JOIN questions q ON q.id = o.question_id
        WHERE q.session_id = :sid
        ORDER BY q.question_order ASC, o.option_order ASC
        """,
        {"sid": session_id},
    )


def insert_option(
    handle: StorageHandle,
    *,
    option_id: str,
    question_id: str,
    order_value: int,
    title: str,
    description: str = "",
    reward_message: str = "",
    reward_point: int = 0,
    effect: bool = False,
) -> None:
    handle.execute(
        """
        INSERT INTO options (
            id, question_id, option_order, title, description, reward_message, reward_point, effect
        )
        VALUES (:oid, :qid, :ord, :title, :descr, :msg, :pt, :effect)
        """,
        {
            "oid": option_id,
            "qid": question_id,
            "ord": int(order_value),
            "title": title,
            "descr": description,
            "msg": reward_message,
            "pt": int(reward_point),
            "effect": bool(effect),
        },
    )


def update_option(handle: StorageHandle, option_id: str, changes: Dict[str, Any]) -> int:
    fields = [f for f in UPDATABLE_OPTION_FIELDS if f in changes]
    if not fields:
        return 0
    params = {f: changes[f] for f in fields}
    params["oid"] = option_id
    return handle.execute(
        f"UPDATE options SET {', '.join(f'{f} = :{f}' for f in fields)} WHERE id = :oid",
        params,
    )


def delete_option(handle: StorageHandle, option_id: str) -> int:
    return handle.execute("DELETE FROM options WHERE id = :oid", {"oid": option_id})


def option_ids_for_question(handle: StorageHandle, question_id: str) -> List[str]:
    return [str(r["id"]) for r in list_options(handle, question_id)]


__all__ = [
    "UPDATABLE_OPTION_FIELDS",
    "UPDATABLE_QUESTION_FIELDS",
    "delete_option",
    "delete_question",
    "get_option",
    "get_question",
    "insert_option",
    "insert_question",
    "list_options",
    "list_options_for_session",
    "list_questions",
    "option_ids_for_question",
    "set_default_option",
    "update_option",
    "update_question",
]
