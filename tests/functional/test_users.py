"""User lifecycle: login, role promotion and enrollment."""

from __future__ import annotations

import pytest

from progresslens.logic import repository_sessions as sessions
from progresslens.logic.errors import DomainRuleViolation, GuestNotAllowed, NotFound
from progresslens.logic.identity import Identity
from progresslens.logic.repository_users import get_user
from progresslens.logic.sessions_write import create_session, update_session
from progresslens.logic.users import assign_role, enroll_by_access_code, finalize_login


@pytest.mark.parametrize(
    "current,requested,allowed",
    [
        ("STUDENT", "TEACHER", True),
        ("TEACHER", "ADMIN", True),
        ("STUDENT", "ADMIN", False),
        ("ADMIN", "TEACHER", False),
        ("TEACHER", "STUDENT", False),
        ("TEACHER", "TEACHER", False),
        ("ADMIN", "ADMIN", False),
    ],
)
def test_role_transitions(storage, make_user, current, requested, allowed):
    user_id = make_user(current)

    if allowed:
        row = assign_role(storage, user_id, requested)
        assert row["role"] == requested
    else:
        with pytest.raises(DomainRuleViolation):
            assign_role(storage, user_id, requested)
        assert get_user(storage, user_id)["role"] == current


def test_assign_role_to_unknown_user(storage):
    with pytest.raises(NotFound):
        assign_role(storage, "ghost", "TEACHER")


def test_finalize_login_creates_student_once(storage):
    identity = Identity("sub-123", email="hanako@example.com")

    first = finalize_login(storage, identity)
    second = finalize_login(storage, identity)

    assert first.created is True and second.created is False
    assert first.role == "STUDENT"
    assert first.display_name == "hanako"
    assert first.redirect_path == "/student/dashboard"
    assert get_user(storage, "sub-123")["display_name"] == "hanako"


@pytest.fixture()
def open_session(storage, make_user, small_authoring):
    session_id = create_session(storage, make_user("TEACHER"), "Unit 1", small_authoring)
    return sessions.get_session(storage, session_id)


def test_enrollment_is_idempotent(storage, make_user, open_session):
    student = get_user(storage, make_user("STUDENT"))

    first = enroll_by_access_code(storage, student, open_session["access_code"])
    again = enroll_by_access_code(storage, student, open_session["access_code"])

    assert first["alreadyEnrolled"] is False
    assert again["alreadyEnrolled"] is True
    assert sessions.is_enrolled(storage, str(open_session["id"]), str(student["id"]))


def test_inactive_session_rejects_enrollment(storage, make_user, open_session):
    update_session(storage, str(open_session["id"]), {"is_active": False})
    student = get_user(storage, make_user("STUDENT"))

    with pytest.raises(DomainRuleViolation) as excinfo:
        enroll_by_access_code(storage, student, open_session["access_code"])

    assert excinfo.value.code == "SESSION_NOT_ACTIVE"


def test_guest_enrollment_follows_session_flag(storage, make_user, open_session):
    guest = get_user(storage, make_user("STUDENT", is_guest=True))
    code = open_session["access_code"]

    with pytest.raises(GuestNotAllowed):
        enroll_by_access_code(storage, guest, code)

    update_session(storage, str(open_session["id"]), {"allow_guest_enrollment": True})
    assert enroll_by_access_code(storage, guest, code)["alreadyEnrolled"] is False
