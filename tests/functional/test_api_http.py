"""HTTP contract: envelopes, status codes and guard-before-validation ordering."""

from __future__ import annotations

import time

import pytest
from jose import jwt

from progresslens.http.problem import PROBLEM_MEDIA_TYPE
from progresslens.logic.order_sequences import OPTIONS, QUESTIONS, SESSIONS, ordered_ids
from progresslens.logic.questions_write import create_question
from progresslens.logic.sessions_write import create_session

API = "/api/v1"


def _error(resp, status: int, code: str) -> dict:
    assert resp.status_code == status, resp.text
    assert resp.headers["content-type"].startswith(PROBLEM_MEDIA_TYPE)
    body = resp.json()
    assert body["success"] is False
    assert body["httpStatus"] == status
    assert body["data"] is None
    assert body["error"]["code"] == code
    assert body["status"] == status
    return body["error"]


@pytest.fixture()
def teacher(make_user):
    return make_user("TEACHER", name="Sato")


@pytest.fixture()
def session_tree(storage, teacher, small_authoring):
    session_id = create_session(storage, teacher, "Unit 1", small_authoring)
    q2 = create_question(storage, session_id, small_authoring, title="Second")
    q3 = create_question(storage, session_id, small_authoring, title="Third")
    q1 = ordered_ids(storage, QUESTIONS, session_id)[0]
    return session_id, q1, q2, q3


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_missing_token_is_401(client, session_tree):
    session_id = session_tree[0]
    resp = client.get(f"{API}/teacher/sessions/{session_id}")
    err = _error(resp, 401, "INVALID_TOKEN")
    assert err["origin"] == "Client"
    assert resp.headers.get("X-Request-Id")


def test_token_signed_with_other_secret_is_401(client, teacher):
    forged = jwt.encode({"sub": teacher, "exp": int(time.time()) + 60}, "not-the-secret", algorithm="HS256")
    resp = client.get(f"{API}/teacher/sessions", headers={"Authorization": f"Bearer {forged}"})
    _error(resp, 401, "INVALID_TOKEN")


def test_request_id_is_echoed(client, teacher, auth_headers):
    headers = {**auth_headers(teacher), "X-Request-Id": "req-42"}
    resp = client.get(f"{API}/teacher/sessions", headers=headers)
    assert resp.status_code == 200
    assert resp.headers["X-Request-Id"] == "req-42"


def test_create_and_list_sessions(client, teacher, auth_headers):
    resp = client.post(f"{API}/teacher/sessions/new", json={"title": "Fractions"}, headers=auth_headers(teacher))

    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["success"] is True and body["httpStatus"] == 201 and body["error"] is None
    created = body["data"]
    assert created["title"] == "Fractions"
    assert len(created["questions"]) == 1
    assert len(created["questions"][0]["options"]) == 6

    listed = client.get(f"{API}/teacher/sessions", headers=auth_headers(teacher)).json()["data"]
    assert [s["id"] for s in listed] == [created["id"]]
    assert listed[0]["questionsCount"] == 1
    assert listed[0]["enrollmentCount"] == 0


def test_guest_teacher_cannot_create_session(client, make_user, auth_headers):
    guest = make_user("TEACHER", is_guest=True)
    resp = client.post(f"{API}/teacher/sessions/new", json={"title": "Fractions"}, headers=auth_headers(guest))
    _error(resp, 403, "GUEST_NOT_ALLOWED")


def test_reorder_questions_over_http(client, teacher, auth_headers, session_tree):
    session_id, q1, q2, q3 = session_tree
    body = {"data": [{"questionId": q1, "order": 3}, {"questionId": q2, "order": 1}, {"questionId": q3, "order": 2}]}

    resp = client.put(f"{API}/teacher/sessions/{session_id}/questions-order", json=body, headers=auth_headers(teacher))

    assert resp.status_code == 200, resp.text
    assert [q["questionId"] for q in resp.json()["data"]["questions"]] == [q2, q3, q1]
    tree = client.get(f"{API}/teacher/sessions/{session_id}", headers=auth_headers(teacher)).json()["data"]
    assert [q["id"] for q in tree["questions"]] == [q2, q3, q1]


def test_reorder_with_missing_question_is_order_set_mismatch(client, teacher, auth_headers, session_tree):
    session_id, q1, q2, q3 = session_tree
    body = {"data": [{"questionId": q1, "order": 2}, {"questionId": q2, "order": 1}]}

    resp = client.put(f"{API}/teacher/sessions/{session_id}/questions-order", json=body, headers=auth_headers(teacher))

    err = _error(resp, 400, "ORDER_SET_MISMATCH")
    assert err["details"]["missing"] == [q3]


def test_reorder_rejects_order_below_one(client, teacher, auth_headers, session_tree):
    session_id, q1, q2, q3 = session_tree
    body = {"data": [{"questionId": q1, "order": 0}, {"questionId": q2, "order": 1}, {"questionId": q3, "order": 2}]}

    resp = client.put(f"{API}/teacher/sessions/{session_id}/questions-order", json=body, headers=auth_headers(teacher))

    _error(resp, 400, "VALIDATION_ERROR")


def test_student_is_rejected_before_body_validation(client, make_user, auth_headers, session_tree):
    session_id = session_tree[0]
    student = make_user("STUDENT")

    resp = client.put(
        f"{API}/teacher/sessions/{session_id}/questions-order",
        json={"data": "not-a-list"},
        headers=auth_headers(student),
    )

    _error(resp, 403, "INSUFFICIENT_ROLE")


def test_non_owner_gets_ownership_violation_with_valid_body(client, make_user, auth_headers, session_tree):
    session_id, q1, q2, q3 = session_tree
    intruder = make_user("TEACHER", name="Intruder")
    body = {"data": [{"questionId": q1, "order": 1}, {"questionId": q2, "order": 2}, {"questionId": q3, "order": 3}]}

    resp = client.put(f"{API}/teacher/sessions/{session_id}/questions-order", json=body, headers=auth_headers(intruder))

    err = _error(resp, 403, "OWNERSHIP_VIOLATION")
    assert err["details"]["userId"] == intruder
    assert err["details"]["userDisplayName"] == "Intruder"
    assert err["details"]["resourceId"] == session_id


def test_unknown_session_is_404(client, teacher, auth_headers):
    resp = client.post(f"{API}/teacher/sessions/nope/duplicate", headers=auth_headers(teacher))
    _error(resp, 404, "NOT_FOUND")


def test_duplicate_question_over_http(client, storage, teacher, auth_headers, session_tree):
    session_id, q1, q2, _ = session_tree

    resp = client.post(f"{API}/teacher/questions/{q1}/duplicate", headers=auth_headers(teacher))

    assert resp.status_code == 200, resp.text
    assert resp.json()["success"] is True
    assert resp.json()["data"] is None
    ids = ordered_ids(storage, QUESTIONS, session_id)
    assert len(ids) == 4
    assert ids[0] == q1 and ids[2] == q2
    tree = client.get(f"{API}/teacher/sessions/{session_id}", headers=auth_headers(teacher)).json()["data"]
    copy = tree["questions"][1]
    assert copy["id"] == ids[1]
    assert copy["order"] == 2
    assert copy["defaultOptionId"] == copy["options"][0]["id"]
    assert copy["defaultOptionId"] not in ordered_ids(storage, OPTIONS, q1)


def test_duplicate_session_over_http(client, storage, teacher, auth_headers, session_tree):
    session_id = session_tree[0]

    resp = client.post(f"{API}/teacher/sessions/{session_id}/duplicate", headers=auth_headers(teacher))

    assert resp.status_code == 200, resp.text
    assert resp.json()["data"] is None
    sessions = ordered_ids(storage, SESSIONS, teacher)
    assert len(sessions) == 2
    assert sessions[0] == session_id
    copy = client.get(f"{API}/teacher/sessions/{sessions[1]}", headers=auth_headers(teacher)).json()["data"]
    assert copy["order"] == 2
    assert len(copy["questions"]) == 3


def test_create_question_at_position(client, teacher, auth_headers, session_tree):
    session_id, q1, q2, q3 = session_tree

    resp = client.post(
        f"{API}/teacher/questions/new",
        json={"sessionId": session_id, "order": 1, "title": "Warm up"},
        headers=auth_headers(teacher),
    )

    assert resp.status_code == 201, resp.text
    created = resp.json()["data"]
    assert created["order"] == 1
    assert created["title"] == "Warm up"
    tree = client.get(f"{API}/teacher/sessions/{session_id}", headers=auth_headers(teacher)).json()["data"]
    assert [q["id"] for q in tree["questions"]] == [created["id"], q1, q2, q3]


def test_create_question_for_foreign_session(client, make_user, auth_headers, session_tree):
    session_id = session_tree[0]
    intruder = make_user("TEACHER")

    resp = client.post(
        f"{API}/teacher/questions/new",
        json={"sessionId": session_id, "order": -5},
        headers=auth_headers(intruder),
    )

    _error(resp, 403, "OWNERSHIP_VIOLATION")


def test_create_question_for_foreign_session_by_field_name(client, storage, make_user, auth_headers, session_tree):
    session_id = session_tree[0]
    intruder = make_user("TEACHER")
    before = ordered_ids(storage, QUESTIONS, session_id)

    resp = client.post(
        f"{API}/teacher/questions/new",
        json={"session_id": session_id, "title": "Injected"},
        headers=auth_headers(intruder),
    )

    _error(resp, 403, "OWNERSHIP_VIOLATION")
    assert ordered_ids(storage, QUESTIONS, session_id) == before


def test_update_question_default_option(client, storage, teacher, auth_headers, session_tree):
    _, q1, q2, _ = session_tree
    o2 = ordered_ids(storage, OPTIONS, q1)[1]
    foreign = ordered_ids(storage, OPTIONS, q2)[0]
    url = f"{API}/teacher/questions/{q1}/default-option-id"

    ok = client.put(url, json={"id": q1, "defaultOptionId": o2}, headers=auth_headers(teacher))
    assert ok.status_code == 200, ok.text
    assert ok.json()["data"]["defaultOptionId"] == o2

    _error(client.put(url, json={"id": q1, "defaultOptionId": foreign}, headers=auth_headers(teacher)), 400, "DOMAIN_RULE_VIOLATION")
    _error(client.put(url, json={"id": q2, "defaultOptionId": o2}, headers=auth_headers(teacher)), 400, "VALIDATION_ERROR")


def test_update_option_attributes(client, storage, teacher, auth_headers, session_tree):
    _, q1, _, _ = session_tree
    o1 = ordered_ids(storage, OPTIONS, q1)[0]
    url = f"{API}/teacher/options/{o1}"

    resp = client.put(f"{url}/reward-point", json={"id": o1, "rewardPoint": 3}, headers=auth_headers(teacher))
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["rewardPoint"] == 3

    _error(client.put(f"{url}/reward-point", json={"id": o1, "rewardPoint": -1}, headers=auth_headers(teacher)), 400, "VALIDATION_ERROR")
    _error(client.put(f"{url}/colour", json={"id": o1}, headers=auth_headers(teacher)), 404, "NOT_FOUND")
    _error(client.delete(url, headers=auth_headers(teacher)), 400, "DOMAIN_RULE_VIOLATION")


def test_assign_role(client, make_user, auth_headers):
    admin = make_user("ADMIN")
    student = make_user("STUDENT")

    resp = client.post(f"{API}/admin/assign-role", json={"id": student, "newRole": "TEACHER"}, headers=auth_headers(admin))
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["role"] == "TEACHER"

    _error(
        client.post(f"{API}/admin/assign-role", json={"id": student, "newRole": "STUDENT"}, headers=auth_headers(admin)),
        400,
        "DOMAIN_RULE_VIOLATION",
    )
    _error(
        client.post(f"{API}/admin/assign-role", json={"id": admin, "newRole": "ADMIN"}, headers=auth_headers(student)),
        403,
        "INSUFFICIENT_ROLE",
    )


def test_finalize_login_and_profile(client, auth_headers):
    headers = auth_headers("new-subject", email="taro@example.com")

    first = client.get(f"{API}/user/finalize-login", headers=headers).json()["data"]
    assert first["created"] is True
    assert first["redirectPath"] == "/student/dashboard"

    profile = client.get(f"{API}/user/profile", headers=headers).json()["data"]
    assert profile["displayName"] == "taro"
    assert profile["role"] == "STUDENT"

    updated = client.put(f"{API}/user/profile", json={"displayName": " Taro Y "}, headers=headers)
    assert updated.status_code == 200, updated.text
    assert updated.json()["data"]["displayName"] == "Taro Y"


def test_enroll_by_access_code(client, make_user, auth_headers, teacher):
    created = client.post(f"{API}/teacher/sessions/new", json={"title": "Fractions"}, headers=auth_headers(teacher))
    code = created.json()["data"]["accessCode"]
    student = make_user("STUDENT")

    resp = client.post(f"{API}/student/sessions/{code}/enroll", headers=auth_headers(student))
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["alreadyEnrolled"] is False

    enrolled = client.get(f"{API}/student/sessions", headers=auth_headers(student)).json()["data"]
    assert [s["accessCode"] for s in enrolled] == [code]

    _error(client.post(f"{API}/student/sessions/12-34/enroll", headers=auth_headers(student)), 400, "VALIDATION_ERROR")
