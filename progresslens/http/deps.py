"""FastAPI dependencies and request-body parsing shared by the routers."""

from __future__ import annotations

from typing import Any, Optional, Type, TypeVar

from fastapi import Header
from pydantic import BaseModel, ValidationError as PydanticValidationError

from progresslens.config import get_config
from progresslens.db.base import StorageHandle, storage_dependency
from progresslens.http.problem import summarize_errors
from progresslens.logic.errors import ValidationError
from progresslens.logic.identity import Identity, verify_bearer

M = TypeVar("M", bound=BaseModel)


def get_storage() -> StorageHandle:
    return storage_dependency()


def get_identity(authorization: Optional[str] = Header(default=None)) -> Identity:
    return verify_bearer(authorization, get_config().auth)


def parse_body(model: Type[M], body: Any) -> M:
    """Validate a raw JSON body; called by handlers only after authorization."""
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError("Request body validation failed", {"errors": summarize_errors(e.errors())}) from e


def require_matching_id(path_id: str, body_id: str) -> None:
    if path_id != body_id:
        raise ValidationError("Body id does not match the path id", {"pathId": path_id, "bodyId": body_id})


__all__ = ["get_identity", "get_storage", "parse_body", "require_matching_id"]
