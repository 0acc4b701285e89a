"""Lightweight SQL migrations runner.

Applies .sql files in lexical order from a migrations directory and records
applied filenames in a file-backed journal (`_journal.json`) so the same
migration is not applied twice. ``migrations/`` targets PostgreSQL and
``sqlite_migrations/`` targets SQLite for local development and CI.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        if "rollback" in p.name.lower():
            continue
        yield p


def _split_statements(sql: str) -> Iterable[str]:
    """Split a migration script into statements, dropping comment-only lines."""
    lines = [ln for ln in sql.splitlines() if not ln.strip().startswith("--")]
    for stmt in "\n".join(lines).split(";"):
        s = stmt.strip()
        if not s or s.upper() in {"BEGIN", "COMMIT", "END"}:
            continue
        yield s


def _exec_script(conn: Connection, sql: str) -> None:
    for stmt in _split_statements(sql):
        conn.exec_driver_sql(stmt)


def _load_journal(journal_path: Path) -> list[dict]:
    if not journal_path.exists():
        return []
    try:
        data = json.loads(journal_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        logger.error("migration_journal_parse_failed path=%s", str(journal_path), exc_info=True)
        return []
    return [e for e in data if isinstance(e, dict)] if isinstance(data, list) else []


def apply_migrations(
    engine: Engine,
    migrations_dir: str | os.PathLike[str] = "migrations",
    *,
    use_journal: bool = True,
) -> list[str]:
    """Apply pending migrations and return the filenames applied."""
    root = Path(migrations_dir)
    if not root.exists():
        logger.warning("migrations_dir_missing path=%s", str(root))
        return []

    journal_path = root / "_journal.json"
    journal_entries = _load_journal(journal_path) if use_journal else []
    applied = {
        Path(e["filename"]).name for e in journal_entries if isinstance(e.get("filename"), str)
    }

    done: list[str] = []
    with engine.begin() as conn:
        for sql_path in _iter_sql_files(root):
            fname = sql_path.name
            if fname in applied:
                continue
            sql = sql_path.read_text(encoding="utf-8")
            if not sql.strip():
                continue
            _exec_script(conn, sql)
            done.append(fname)
            logger.info("migration_applied file=%s", fname)
            if use_journal:
                journal_entries.append(
                    {
                        "filename": f"{root.name}/{fname}",
                        "applied_at": datetime.now(timezone.utc)
                        .replace(microsecond=0)
                        .isoformat()
                        .replace("+00:00", "Z"),
                    }
                )
                _atomic_write_json(journal_path, journal_entries)
    return done


def _atomic_write_json(path: Path, content: list[dict]) -> None:
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(content, ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp_path, path)


__all__ = ["apply_migrations"]
