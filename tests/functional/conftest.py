from __future__ import annotations

"""Functional test bootstrap.

Each test gets its own file-backed SQLite database built from
``sqlite_migrations/``. The application and the engine-level tests share the
cached engine for that URL, so rows seeded through ``storage`` are visible
to requests made through ``client``.
"""

import os
import pathlib
import time
import uuid
from typing import Callable, Dict, Optional

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from progresslens.config import AuthoringConfig, get_config
from progresslens.db.base import EngineHandle, get_engine, reset_engine
from progresslens.db.migrations_runner import apply_migrations
from progresslens.logic.repository_users import create_user

_ROOT = pathlib.Path(__file__).resolve().parents[2]
TEST_JWT_SECRET = "functional-test-secret"

# Disable app startup auto-migrations; the fixtures apply SQLite migrations explicitly
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"


@pytest.fixture()
def db_url(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch):
    url = f"sqlite:///{tmp_path / 'authoring.db'}"
    monkeypatch.setenv("TEST_DATABASE_URL", url)
    monkeypatch.setenv("JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.delenv("JWT_AUDIENCE", raising=False)
    monkeypatch.delenv("JWT_ISSUER", raising=False)
    monkeypatch.delenv("OPTION_SET_SIZE", raising=False)
    monkeypatch.delenv("ACCESS_CODE_BATCH_SIZE", raising=False)
    get_config.cache_clear()
    reset_engine()
    apply_migrations(get_engine(url), _ROOT / "sqlite_migrations", use_journal=False)
    yield url
    reset_engine()
    get_config.cache_clear()


@pytest.fixture()
def storage(db_url: str) -> EngineHandle:
    return EngineHandle(get_engine(db_url))


@pytest.fixture()
def authoring() -> AuthoringConfig:
    return AuthoringConfig()


@pytest.fixture()
def small_authoring() -> AuthoringConfig:
    """Three options per question keeps scenario tables readable."""
    return AuthoringConfig(option_set_size=3)


@pytest.fixture()
def make_user(storage: EngineHandle) -> Callable[..., str]:
    def _make(role: str = "TEACHER", *, is_guest: bool = False, name: Optional[str] = None) -> str:
        user_id = str(uuid.uuid4())
        create_user(storage, user_id, name or f"{role.lower()}-{user_id[:4]}", role=role, is_guest=is_guest)
        return user_id

    return _make


def mint_token(subject: str, *, email: Optional[str] = None, secret: str = TEST_JWT_SECRET) -> str:
    claims = {"sub": subject, "exp": int(time.time()) + 3600}
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture()
def auth_headers() -> Callable[..., Dict[str, str]]:
    def _headers(subject: str, *, email: Optional[str] = None) -> Dict[str, str]:
        return {"Authorization": f"Bearer {mint_token(subject, email=email)}"}

    return _headers


@pytest.fixture()
def client(db_url: str):
    from progresslens.main import create_app

    with TestClient(create_app()) as c:
        yield c
