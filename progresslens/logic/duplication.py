"""Deep copies of session and question subtrees.

A copy gets fresh ids for every row it contains. The remap table built while
copying options is what re-points the copied question's default option at
the copy of the original default rather than at the original itself.
The copy lands directly after its original; later siblings shift by +1.
"""

from __future__ import annotations

import logging
import uuid
from typing import Dict, Optional

from sqlalchemy.engine import RowMapping

from progresslens.db.base import StorageHandle
from progresslens.logic import repository_questions as questions
from progresslens.logic import repository_sessions as sessions
from progresslens.logic.access_codes import generate_access_code
from progresslens.logic.order_sequences import QUESTIONS, SESSIONS, insert_after
from progresslens.logic.transaction import run_in_transaction

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def _copy_question(
    tx: StorageHandle,
    source: RowMapping,
    *,
    target_session_id: str,
    order_value: int,
) -> Dict[str, str]:
    """Write a copy of ``source`` and its options; return the old -> new id map."""
    new_question_id = _new_id()
    remap: Dict[str, str] = {str(source["id"]): new_question_id}
    questions.insert_question(
        tx,
        question_id=new_question_id,
        session_id=target_session_id,
        order_value=order_value,
        title=source["title"],
        description=source["description"] or "",
    )
    for option in questions.list_options(tx, str(source["id"])):
        new_option_id = _new_id()
        remap[str(option["id"])] = new_option_id
        questions.insert_option(
            tx,
            option_id=new_option_id,
            question_id=new_question_id,
            order_value=int(option["option_order"]),
            title=option["title"],
            description=option["description"] or "",
            reward_message=option["reward_message"] or "",
            reward_point=int(option["reward_point"]),
            effect=bool(option["effect"]),
        )

    original_default: Optional[str] = (
        str(source["default_option_id"]) if source["default_option_id"] is not None else None
    )
    if original_default is not None:
        questions.set_default_option(tx, new_question_id, remap.get(original_default))
    return remap


def duplicate_question(handle: StorageHandle, question_id: str) -> str:
    """Copy a question with its options into the same session; return the new id."""

    def _work(tx: StorageHandle) -> str:
        source = questions.get_question(tx, question_id)
        session_id = str(source["session_id"])
        slot = insert_after(tx, QUESTIONS, session_id, int(source["question_order"]))
        remap = _copy_question(tx, source, target_session_id=session_id, order_value=slot)
        sessions.touch_session(tx, session_id)
        return remap[question_id]

    new_id = run_in_transaction(handle, _work, label="duplicate_question")
    logger.info("duplicate.question.done source_id=%s new_id=%s", question_id, new_id)
    return new_id


def duplicate_session(handle: StorageHandle, session_id: str) -> str:
    """Copy a session with all its questions and options; return the new id.

    The copy keeps title and flags, gets a fresh access code and starts
    without enrollments.
    """

    def _work(tx: StorageHandle) -> str:
        source = sessions.get_session(tx, session_id)
        source_questions = list(questions.list_questions(tx, session_id))
        teacher_id = str(source["teacher_id"])

        new_session_id = _new_id()
        slot = insert_after(tx, SESSIONS, teacher_id, int(source["session_order"]))
        sessions.insert_session(
            tx,
            session_id=new_session_id,
            teacher_id=teacher_id,
            title=source["title"],
            access_code=generate_access_code(tx),
            session_order=slot,
            is_active=bool(source["is_active"]),
            allow_guest_enrollment=bool(source["allow_guest_enrollment"]),
        )
        option_count = 0
        for question in source_questions:
            remap = _copy_question(
                tx,
                question,
                target_session_id=new_session_id,
                order_value=int(question["question_order"]),
            )
            option_count += len(remap) - 1
        logger.debug(
            "duplicate.session.copied session_id=%s questions=%s options=%s",
            new_session_id,
            len(source_questions),
            option_count,
        )
        return new_session_id

    new_id = run_in_transaction(handle, _work, label="duplicate_session")
    logger.info("duplicate.session.done source_id=%s new_id=%s", session_id, new_id)
    return new_id


__all__ = ["duplicate_question", "duplicate_session"]
