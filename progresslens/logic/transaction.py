"""Transaction coordinator.

``run_in_transaction`` lets a unit of work run standalone (opening and owning
its transaction) or nested inside a larger operation (joining the caller's
transaction) without the work itself knowing which case applies.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from progresslens.db.base import StorageHandle
from progresslens.logic.errors import DatabaseOperationError, DomainError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_in_transaction(handle: StorageHandle, work: Callable[[StorageHandle], T], *, label: str = "work") -> T:
    """Run ``work`` against a transactional handle.

    Joins ``handle`` when it already carries a transaction; otherwise opens
    one, commits when ``work`` returns and rolls back when it raises. Storage
    driver failures surface as ``DatabaseOperationError``; domain errors pass
    through unchanged.
    """
    if handle.in_transaction:
        return work(handle)
    try:
        with handle.begin() as tx:
            return work(tx)
    except DomainError:
        logger.info("tx.rolled_back label=%s", label)
        raise
    except SQLAlchemyError as exc:
        logger.error("tx.failed label=%s", label, exc_info=True)
        raise DatabaseOperationError(
            f"Storage operation failed during {label}: {exc.__class__.__name__}",
            {"label": label},
        ) from exc


__all__ = ["run_in_transaction"]
