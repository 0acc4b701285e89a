"""Human-shareable session access codes (``NNN-NNNN``)."""

from __future__ import annotations

import logging
import re
import secrets

from progresslens.db.base import StorageHandle
from progresslens.logic.errors import DatabaseOperationError
from progresslens.logic.repository_sessions import existing_access_codes

logger = logging.getLogger(__name__)

ACCESS_CODE_PATTERN = re.compile(r"^\d{3}-\d{4}$")


def is_access_code(value: str) -> bool:
    return bool(ACCESS_CODE_PATTERN.fullmatch(value or ""))


def _digits(length: int) -> str:
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


def generate_access_code(handle: StorageHandle, batch_size: int = 5, max_rounds: int = 20) -> str:
    """Return an access code not yet used by any session.

    Candidates are generated in batches and checked with a single query per
    batch. The UNIQUE constraint on ``access_code`` remains the backstop for
    a concurrent insert of the same code.
    """
    for attempt in range(1, max_rounds + 1):
        candidates: set[str] = set()
        while len(candidates) < batch_size:
            candidates.add(f"{_digits(3)}-{_digits(4)}")
        taken = existing_access_codes(handle, candidates)
        available = sorted(candidates - taken)
        if available:
            return available[0]
        logger.warning("access_code.batch_exhausted attempt=%s", attempt)
    raise DatabaseOperationError("Could not allocate a free access code", {"rounds": max_rounds})


__all__ = ["ACCESS_CODE_PATTERN", "generate_access_code", "is_access_code"]
