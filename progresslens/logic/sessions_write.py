"""Learning session write flows."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict

from progresslens.config import AuthoringConfig
from progresslens.db.base import StorageHandle
from progresslens.logic import repository_sessions as sessions
from progresslens.logic.access_codes import generate_access_code
from progresslens.logic.order_sequences import SESSIONS, next_order
from progresslens.logic.questions_write import create_question
from progresslens.logic.transaction import run_in_transaction

logger = logging.getLogger(__name__)


def create_session(handle: StorageHandle, teacher_id: str, title: str, authoring: AuthoringConfig) -> str:
    """Create a session with one initial question and return the session id.

    The session row, its question and the question's option set are written
    in one transaction.
    """

    def _work(tx: StorageHandle) -> str:
        session_id = str(uuid.uuid4())
        access_code = generate_access_code(tx, batch_size=authoring.access_code_batch_size)
        sessions.insert_session(
            tx,
            session_id=session_id,
            teacher_id=teacher_id,
            title=title.strip(),
            access_code=access_code,
            session_order=next_order(tx, SESSIONS, teacher_id),
        )
        create_question(tx, session_id, authoring, order=1)
        return session_id

    session_id = run_in_transaction(handle, _work, label="create_session")
    logger.info("session.created teacher_id=%s session_id=%s", teacher_id, session_id)
    return session_id


def update_session(handle: StorageHandle, session_id: str, changes: Dict[str, Any]) -> None:
    def _work(tx: StorageHandle) -> None:
        sessions.get_session(tx, session_id)
        sessions.update_session(tx, session_id, changes)

    run_in_transaction(handle, _work, label="update_session")
    logger.info("session.updated session_id=%s fields=%s", session_id, sorted(changes))


def delete_session(handle: StorageHandle, session_id: str) -> None:
    """Delete a session with its questions, options and enrollments."""

    def _work(tx: StorageHandle) -> None:
        sessions.get_session(tx, session_id)
        sessions.delete_session(tx, session_id)

    run_in_transaction(handle, _work, label="delete_session")
    logger.info("session.deleted session_id=%s", session_id)


__all__ = ["create_session", "delete_session", "update_session"]
