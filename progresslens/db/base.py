"""SQLAlchemy engine construction and storage handles.

The service targets PostgreSQL in production but supports SQLite for local
development and CI. No declarative models are defined here: the service layer
talks to the store through the small ``StorageHandle`` interface below, which
has one implementation for the top-level engine and one for an active
transaction.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional, Protocol, Sequence

from sqlalchemy import create_engine, event
from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine, RowMapping
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def _db_url() -> str:
    return (
        os.getenv("TEST_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or "sqlite+pysqlite:///:memory:"
    )


_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def _install_sqlite_hooks(engine: Engine) -> None:
    """Enable FK enforcement and make pysqlite honour transaction boundaries.

    pysqlite defers BEGIN until the first DML statement, so reads issued at
    the start of a transaction would otherwise run outside of it.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):  # type: ignore[no-untyped-def]
        conn.exec_driver_sql("BEGIN")


def get_engine(url: str | None = None) -> Engine:
    """Return a cached SQLAlchemy Engine for the given URL.

    For SQLite in-memory URLs, use a StaticPool to keep a single connection
    alive across sessions and threads during tests.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or _db_url()

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"future": True, "pool_pre_ping": True}
        if resolved_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in resolved_url:
                kwargs["poolclass"] = StaticPool
        if _ENGINE is not None:
            _ENGINE.dispose()
        _ENGINE = create_engine(resolved_url, **kwargs)
        _ENGINE_URL = resolved_url
        if resolved_url.startswith("sqlite"):
            _install_sqlite_hooks(_ENGINE)
        logger.info("db.engine.created dialect=%s", _ENGINE.dialect.name)

    return _ENGINE


def reset_engine() -> None:
    """Dispose the cached engine so the next call rebuilds it."""
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None


Params = Optional[Mapping[str, Any]]


class StorageHandle(Protocol):
    """Read/write surface the service layer depends on."""

    in_transaction: bool

    def fetch_one(self, sql: str, params: Params = None) -> Optional[RowMapping]: ...

    def fetch_all(self, sql: str, params: Params = None) -> Sequence[RowMapping]: ...

    def execute(self, sql: str, params: Params = None) -> int: ...

    def begin(self):  # type: ignore[no-untyped-def]
        ...


class TransactionHandle:
    """Handle bound to a connection with an open transaction."""

    in_transaction = True

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def fetch_one(self, sql: str, params: Params = None) -> Optional[RowMapping]:
        return self.conn.execute(sql_text(sql), dict(params or {})).mappings().first()

    def fetch_all(self, sql: str, params: Params = None) -> Sequence[RowMapping]:
        return self.conn.execute(sql_text(sql), dict(params or {})).mappings().all()

    def execute(self, sql: str, params: Params = None) -> int:
        result = self.conn.execute(sql_text(sql), dict(params or {}))
        return int(result.rowcount or 0)

    @contextmanager
    def begin(self) -> Iterator["TransactionHandle"]:
        # Already inside a transaction; callers join it.
        yield self


class EngineHandle:
    """Top-level handle: every statement runs in its own short transaction."""

    in_transaction = False

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def fetch_one(self, sql: str, params: Params = None) -> Optional[RowMapping]:
        with self.engine.begin() as conn:
            return conn.execute(sql_text(sql), dict(params or {})).mappings().first()

    def fetch_all(self, sql: str, params: Params = None) -> Sequence[RowMapping]:
        with self.engine.begin() as conn:
            return conn.execute(sql_text(sql), dict(params or {})).mappings().all()

    def execute(self, sql: str, params: Params = None) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(sql_text(sql), dict(params or {}))
            return int(result.rowcount or 0)

    @contextmanager
    def begin(self) -> Iterator[TransactionHandle]:
        """Open a transaction; commit on success, roll back on any exception."""
        with self.engine.begin() as conn:
            yield TransactionHandle(conn)


def storage_dependency() -> EngineHandle:
    """Return a top-level storage handle on the configured database."""
    from progresslens.config import get_config

    return EngineHandle(get_engine(get_config().database.dsn))


__all__ = [
    "EngineHandle",
    "StorageHandle",
    "TransactionHandle",
    "get_engine",
    "reset_engine",
    "storage_dependency",
]
