"""Database bootstrap utilities for the ProgressLens authoring service.

Exposes engine construction, the storage handles used by the service layer
and the SQL migrations runner. No ORM models leak into route handlers.
"""

from progresslens.db.base import (
    EngineHandle,
    StorageHandle,
    TransactionHandle,
    get_engine,
    reset_engine,
    storage_dependency,
)
from progresslens.db.migrations_runner import apply_migrations

__all__ = [
    "EngineHandle",
    "StorageHandle",
    "TransactionHandle",
    "apply_migrations",
    "get_engine",
    "reset_engine",
    "storage_dependency",
]
