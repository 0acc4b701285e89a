"""Sibling order sequences.

Backend-authoritative handling of the 1-based order columns of sessions
(per teacher), questions (per session) and options (per question):

- full reorders validated as a bijection against the stored children,
- slot opening for inserts and duplicates (later siblings shift by +1),
- append positions for new rows.

Order columns carry UNIQUE(parent, order) constraints, so every multi-row
rewrite is two-phase: affected rows are first parked on negative values and
then written with their final positive values.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from progresslens.db.base import StorageHandle
from progresslens.logic.errors import OrderSetMismatch
from progresslens.logic.transaction import run_in_transaction

logger = logging.getLogger(__name__)

OrderItem = Tuple[str, int]


@dataclass(frozen=True)
class SiblingSet:
    table: str
    parent_column: str
    order_column: str
    child_label: str
    parent_label: str


SESSIONS = SiblingSet("learning_sessions", "teacher_id", "session_order", "session", "teacher")
QUESTIONS = SiblingSet("questions", "session_id", "question_order", "question", "session")
OPTIONS = SiblingSet("options", "question_id", "option_order", "option", "question")


def current_orders(handle: StorageHandle, siblings: SiblingSet, parent_id: str) -> Dict[str, int]:
    rows = handle.fetch_all(
        f"SELECT id, {siblings.order_column} AS ord FROM {siblings.table} "
        f"WHERE {siblings.parent_column} = :pid ORDER BY {siblings.order_column} ASC",
        {"pid": parent_id},
    )
    return {str(r["id"]): int(r["ord"]) for r in rows}


def next_order(handle: StorageHandle, siblings: SiblingSet, parent_id: str) -> int:
    row = handle.fetch_one(
        f"SELECT COALESCE(MAX({siblings.order_column}), 0) AS max_ord FROM {siblings.table} "
        f"WHERE {siblings.parent_column} = :pid",
        {"pid": parent_id},
    )
    return (int(row["max_ord"]) if row else 0) + 1


def _shift_from(handle: StorageHandle, siblings: SiblingSet, parent_id: str, start: int) -> int:
    """Move every sibling with order >= ``start`` up by one."""
    moved = handle.execute(
        f"UPDATE {siblings.table} SET {siblings.order_column} = -({siblings.order_column} + 1) "
        f"WHERE {siblings.parent_column} = :pid AND {siblings.order_column} >= :start",
        {"pid": parent_id, "start": int(start)},
    )
    if moved:
        handle.execute(
            f"UPDATE {siblings.table} SET {siblings.order_column} = -{siblings.order_column} "
            f"WHERE {siblings.parent_column} = :pid AND {siblings.order_column} < 0",
            {"pid": parent_id},
        )
    return moved


def open_slot(
    handle: StorageHandle,
    siblings: SiblingSet,
    parent_id: str,
    position: Optional[int] = None,
) -> int:
    """Return the order a new child should take, making room for it.

    ``None`` or a position past the end appends (max + 1). Otherwise every
    sibling at or after ``position`` shifts by +1 and ``position`` is
    returned. Must run inside the caller's transaction.
    """
    tail = next_order(handle, siblings, parent_id)
    if position is None or int(position) >= tail:
        return tail
    pos = max(1, int(position))
    moved = _shift_from(handle, siblings, parent_id, pos)
    logger.info(
        "order.slot_opened %s=%s position=%s shifted=%s",
        siblings.parent_label,
        parent_id,
        pos,
        moved,
    )
    return pos


def insert_after(handle: StorageHandle, siblings: SiblingSet, parent_id: str, anchor_order: int) -> int:
    """Open the slot directly after ``anchor_order`` and return it."""
    target = int(anchor_order) + 1
    _shift_from(handle, siblings, parent_id, target)
    return target


def check_bijection(siblings: SiblingSet, parent_id: str, existing_ids: Iterable[str], items: Sequence[OrderItem]) -> None:
    """Raise ``OrderSetMismatch`` unless ``items`` is a total order of exactly the existing children."""
    existing = set(existing_ids)
    requested_ids = [cid for cid, _ in items]
    counts = Counter(requested_ids)
    duplicated = sorted(cid for cid, n in counts.items() if n > 1)
    requested = set(requested_ids)
    missing = sorted(existing - requested)
    unexpected = sorted(requested - existing)

    orders = [int(o) for _, o in items]
    expected_orders = set(range(1, len(existing) + 1))
    bad_orders = len(orders) != len(set(orders)) or set(orders) != expected_orders

    if duplicated or missing or unexpected or bad_orders:
        raise OrderSetMismatch(
            f"Requested {siblings.child_label} order does not match the {siblings.parent_label}'s "
            f"{siblings.child_label}s",
            {
                f"{siblings.parent_label}Id": parent_id,
                "missing": missing,
                "unexpected": unexpected,
                "duplicated": duplicated,
                "orders": sorted(orders),
                "expectedCount": len(existing),
            },
        )


def _apply_permutation(handle: StorageHandle, siblings: SiblingSet, parent_id: str, items: Sequence[OrderItem]) -> None:
    handle.execute(
        f"UPDATE {siblings.table} SET {siblings.order_column} = -{siblings.order_column} "
        f"WHERE {siblings.parent_column} = :pid",
        {"pid": parent_id},
    )
    for child_id, order in items:
        handle.execute(
            f"UPDATE {siblings.table} SET {siblings.order_column} = :ord "
            f"WHERE id = :cid AND {siblings.parent_column} = :pid",
            {"ord": int(order), "cid": child_id, "pid": parent_id},
        )


def reorder(handle: StorageHandle, siblings: SiblingSet, parent_id: str, items: Sequence[OrderItem]) -> Dict[str, int]:
    """Validate and apply a full reorder of ``parent_id``'s children atomically."""
    items = [(str(cid), int(o)) for cid, o in items]

    def _work(tx: StorageHandle) -> Dict[str, int]:
        before = current_orders(tx, siblings, parent_id)
        check_bijection(siblings, parent_id, before.keys(), items)
        _apply_permutation(tx, siblings, parent_id, items)
        return dict(items)

    result = run_in_transaction(handle, _work, label=f"reorder_{siblings.child_label}s")
    logger.info(
        "reorder.%ss.applied %s=%s count=%s",
        siblings.child_label,
        siblings.parent_label,
        parent_id,
        len(result),
    )
    return result


def reorder_questions(handle: StorageHandle, session_id: str, items: Sequence[OrderItem]) -> Dict[str, int]:
    return reorder(handle, QUESTIONS, session_id, items)


def reorder_options(handle: StorageHandle, question_id: str, items: Sequence[OrderItem]) -> Dict[str, int]:
    return reorder(handle, OPTIONS, question_id, items)


def ordered_ids(handle: StorageHandle, siblings: SiblingSet, parent_id: str) -> List[str]:
    return list(current_orders(handle, siblings, parent_id).keys())


__all__ = [
    "OPTIONS",
    "QUESTIONS",
    "SESSIONS",
    "OrderItem",
    "SiblingSet",
    "check_bijection",
    "current_orders",
    "insert_after",
    "next_order",
    "open_slot",
    "ordered_ids",
    "reorder",
    "reorder_options",
    "reorder_questions",
]
