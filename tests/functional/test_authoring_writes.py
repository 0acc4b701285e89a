"""Session, question and option write flows."""

from __future__ import annotations

import pytest

from progresslens.logic import repository_questions as questions
from progresslens.logic import repository_sessions as sessions
from progresslens.logic.access_codes import is_access_code
from progresslens.logic.errors import DomainRuleViolation
from progresslens.logic.order_sequences import OPTIONS, QUESTIONS, SESSIONS, current_orders, ordered_ids
from progresslens.logic.questions_write import add_option, delete_option, update_question
from progresslens.logic.session_views import session_for_edit
from progresslens.logic.sessions_write import create_session, delete_session


def test_create_session_seeds_first_question(storage, make_user, authoring):
    teacher = make_user("TEACHER")

    session_id = create_session(storage, teacher, "  Unit 1  ", authoring)

    tree = session_for_edit(storage, session_id)
    assert tree["title"] == "Unit 1"
    assert tree["isActive"] is True
    assert is_access_code(tree["accessCode"])
    assert len(tree["questions"]) == 1
    question = tree["questions"][0]
    assert question["order"] == 1
    assert question["title"] == "設問X"
    assert [o["order"] for o in question["options"]] == [1, 2, 3, 4, 5, 6]
    assert [o["title"] for o in question["options"]][:2] == ["選択肢1", "選択肢2"]
    assert question["defaultOptionId"] == question["options"][0]["id"]


def test_sessions_append_in_teacher_order(storage, make_user, small_authoring):
    teacher = make_user("TEACHER")
    ids = [create_session(storage, teacher, f"Unit {i}", small_authoring) for i in range(3)]

    assert current_orders(storage, SESSIONS, teacher) == {ids[0]: 1, ids[1]: 2, ids[2]: 3}
    assert len({sessions.get_session(storage, s)["access_code"] for s in ids}) == 3


@pytest.fixture()
def question(storage, make_user, small_authoring):
    session_id = create_session(storage, make_user("TEACHER"), "Unit 1", small_authoring)
    return ordered_ids(storage, QUESTIONS, session_id)[0]


def test_default_option_must_belong_to_question(storage, question, make_user, small_authoring):
    other_session = create_session(storage, make_user("TEACHER"), "Other", small_authoring)
    foreign_question = ordered_ids(storage, QUESTIONS, other_session)[0]
    foreign_option = ordered_ids(storage, OPTIONS, foreign_question)[0]

    with pytest.raises(DomainRuleViolation):
        update_question(storage, question, {"default_option_id": foreign_option})


def test_default_option_cannot_be_deleted(storage, question):
    o1, o2, o3 = ordered_ids(storage, OPTIONS, question)

    with pytest.raises(DomainRuleViolation):
        delete_option(storage, o1)

    delete_option(storage, o2)
    assert current_orders(storage, OPTIONS, question) == {o1: 1, o3: 3}


def test_add_option_appends(storage, question, small_authoring):
    new_option = add_option(storage, question, small_authoring)

    assert current_orders(storage, OPTIONS, question)[new_option] == 4
    assert questions.get_option(storage, new_option)["title"] == "選択肢4"


def test_delete_session_cascades(storage, question):
    session_id = str(questions.get_question(storage, question)["session_id"])

    delete_session(storage, session_id)

    assert questions.list_questions(storage, session_id) == []
    assert storage.fetch_one("SELECT COUNT(*) AS n FROM options")["n"] == 0
