"""Question and option write flows.

Creation seeds a question with the configured option set and points its
default at the first option. Every flow runs under the transaction
coordinator so it can be nested inside session creation.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from progresslens.config import AuthoringConfig
from progresslens.db.base import StorageHandle
from progresslens.logic import repository_questions as questions
from progresslens.logic.errors import DomainRuleViolation
from progresslens.logic.order_sequences import OPTIONS, QUESTIONS, next_order, open_slot
from progresslens.logic.repository_sessions import touch_session
from progresslens.logic.transaction import run_in_transaction

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def create_question(
    handle: StorageHandle,
    session_id: str,
    authoring: AuthoringConfig,
    *,
    order: Optional[int] = None,
    title: Optional[str] = None,
) -> str:
    """Create a question with its initial option set and return its id.

    ``order`` inserts at that position (later questions shift by +1); when
    omitted the question is appended.
    """

    def _work(tx: StorageHandle) -> str:
        question_id = _new_id()
        slot = open_slot(tx, QUESTIONS, session_id, order)
        questions.insert_question(
            tx,
            question_id=question_id,
            session_id=session_id,
            order_value=slot,
            title=(title or authoring.default_question_title).strip(),
        )
        first_option_id: Optional[str] = None
        for i in range(authoring.option_set_size):
            option_id = _new_id()
            questions.insert_option(
                tx,
                option_id=option_id,
                question_id=question_id,
                order_value=i + 1,
                title=f"{authoring.option_title_prefix}{i + 1}",
            )
            if first_option_id is None:
                first_option_id = option_id
        questions.set_default_option(tx, question_id, first_option_id)
        touch_session(tx, session_id)
        logger.info(
            "question.created session_id=%s question_id=%s order=%s options=%s",
            session_id,
            question_id,
            slot,
            authoring.option_set_size,
        )
        return question_id

    return run_in_transaction(handle, _work, label="create_question")


def update_question(handle: StorageHandle, question_id: str, changes: Dict[str, Any]) -> None:
    """Apply attribute changes; a new default must be one of the question's own options."""

    def _work(tx: StorageHandle) -> None:
        question = questions.get_question(tx, question_id)
        if "default_option_id" in changes:
            new_default = changes["default_option_id"]
            if new_default not in questions.option_ids_for_question(tx, question_id):
                raise DomainRuleViolation(
                    "The default option must belong to the question",
                    {"questionId": question_id, "defaultOptionId": new_default},
                )
        questions.update_question(tx, question_id, changes)
        touch_session(tx, str(question["session_id"]))

    run_in_transaction(handle, _work, label="update_question")
    logger.info("question.updated question_id=%s fields=%s", question_id, sorted(changes))


def delete_question(handle: StorageHandle, question_id: str) -> None:
    """Delete a question and its options. Sibling orders keep their gap."""

    def _work(tx: StorageHandle) -> None:
        question = questions.get_question(tx, question_id)
        questions.delete_question(tx, question_id)
        touch_session(tx, str(question["session_id"]))

    run_in_transaction(handle, _work, label="delete_question")
    logger.info("question.deleted question_id=%s", question_id)


def add_option(
    handle: StorageHandle,
    question_id: str,
    authoring: AuthoringConfig,
    *,
    title: Optional[str] = None,
) -> str:
    """Append one option to a question and return its id."""

    def _work(tx: StorageHandle) -> str:
        question = questions.get_question(tx, question_id)
        option_id = _new_id()
        slot = next_order(tx, OPTIONS, question_id)
        questions.insert_option(
            tx,
            option_id=option_id,
            question_id=question_id,
            order_value=slot,
            title=(title or f"{authoring.option_title_prefix}{slot}").strip(),
        )
        if question["default_option_id"] is None:
            questions.set_default_option(tx, question_id, option_id)
        touch_session(tx, str(question["session_id"]))
        return option_id

    option_id = run_in_transaction(handle, _work, label="add_option")
    logger.info("option.created question_id=%s option_id=%s", question_id, option_id)
    return option_id


def update_option(handle: StorageHandle, option_id: str, changes: Dict[str, Any]) -> None:
    def _work(tx: StorageHandle) -> None:
        option = questions.get_option(tx, option_id)
        questions.update_option(tx, option_id, changes)
        touch_session(tx, str(option["session_id"]))

    run_in_transaction(handle, _work, label="update_option")
    logger.info("option.updated option_id=%s fields=%s", option_id, sorted(changes))


def delete_option(handle: StorageHandle, option_id: str) -> None:
    """Delete a non-default option. Sibling orders keep their gap."""

    def _work(tx: StorageHandle) -> None:
        option = questions.get_option(tx, option_id)
        if option["default_option_id"] == option["id"]:
            raise DomainRuleViolation(
                "The default option cannot be deleted; choose another default first",
                {"optionId": option_id, "questionId": str(option["question_id"])},
            )
        questions.delete_option(tx, option_id)
        touch_session(tx, str(option["session_id"]))

    run_in_transaction(handle, _work, label="delete_option")
    logger.info("option.deleted option_id=%s", option_id)


__all__ = [
    "add_option",
    "create_question",
    "delete_option",
    "delete_question",
    "update_option",
    "update_question",
]
