"""User data access helpers."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.engine import RowMapping

from progresslens.db.base import StorageHandle
from progresslens.logic.errors import NotFound

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, display_name, role, is_guest, avatar_img_key, created_at, updated_at"


def try_get_user(handle: StorageHandle, user_id: str) -> Optional[RowMapping]:
    return handle.fetch_one(f"SELECT {_USER_COLUMNS} FROM users WHERE id = :uid", {"uid": user_id})


def get_user(handle: StorageHandle, user_id: str) -> RowMapping:
    """Return the user row or raise ``NotFound``."""
    row = try_get_user(handle, user_id)
    if row is None:
        raise NotFound("user", user_id)
    return row


def create_user(
    handle: StorageHandle,
    user_id: str,
    display_name: str,
    *,
    role: str = "STUDENT",
    is_guest: bool = False,
) -> None:
    handle.execute(
        "INSERT INTO users (id, display_name, role, is_guest) VALUES (:uid, :name, :role, :guest)",
        {"uid": user_id, "name": display_name, "role": role, "guest": bool(is_guest)},
    )


def set_role(handle: StorageHandle, user_id: str, role: str) -> None:
    handle.execute(
        "UPDATE users SET role = :role, updated_at = CURRENT_TIMESTAMP WHERE id = :uid",
        {"role": role, "uid": user_id},
    )


def update_profile(handle: StorageHandle, user_id: str, display_name: str, avatar_img_key: Optional[str]) -> None:
    handle.execute(
        "UPDATE users SET display_name = :name, avatar_img_key = :avatar, updated_at = CURRENT_TIMESTAMP "
        "WHERE id = :uid",
        {"name": display_name, "avatar": avatar_img_key, "uid": user_id},
    )
