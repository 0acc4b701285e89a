"""Problem+JSON exception handlers.

The single place where typed domain errors, request validation failures,
storage failures and anything unexpected become error envelopes. Bodies carry
the envelope members plus the RFC7807 ``title``/``status``/``detail`` members
and use the application/problem+json media type.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from progresslens.http.envelope import error_envelope
from progresslens.logic.errors import DatabaseOperationError, DomainError, Origin, ValidationError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def summarize_errors(errors: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Reduce pydantic error entries to JSON-safe ``loc``/``msg``/``type`` triples."""
    return [
        {"loc": [str(p) for p in e.get("loc", ())], "msg": str(e.get("msg", "")), "type": str(e.get("type", ""))}
        for e in errors
    ]


def _problem(status: int, title: str, error: Dict[str, Any]) -> JSONResponse:
    body = error_envelope(status, error)
    body.update({"title": title, "status": status, "detail": error.get("message", "")})
    return JSONResponse(body, status_code=status, media_type=PROBLEM_MEDIA_TYPE)


def problem_from_domain_error(exc: DomainError) -> JSONResponse:
    return _problem(exc.status, exc.title, exc.to_dict())


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:  # noqa: D401
    if exc.status >= 500:
        logger.error("request.failed path=%s code=%s", request.url.path, exc.code, exc_info=exc)
    else:
        logger.info("request.rejected path=%s code=%s", request.url.path, exc.code)
    return problem_from_domain_error(exc)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    err = ValidationError("Request validation failed", {"errors": summarize_errors(exc.errors())})
    logger.info("request.rejected path=%s code=%s", request.url.path, err.code)
    return problem_from_domain_error(err)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status = int(exc.status_code or 500)
    origin = Origin.CLIENT if status < 500 else Origin.SERVER
    error = {"code": "HTTP_ERROR", "origin": origin, "message": str(exc.detail or ""), "details": {}}
    return _problem(status, "Error", error)


async def handle_storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:  # noqa: D401
    logger.error("request.storage_failed path=%s", request.url.path, exc_info=exc)
    return problem_from_domain_error(
        DatabaseOperationError("Storage operation failed", {"error": exc.__class__.__name__})
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    error = {"code": "UNKNOWN_ERROR", "origin": Origin.SERVER, "message": "Unexpected server error", "details": {}}
    return _problem(500, "Internal Server Error", error)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "handle_domain_error",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_storage_error",
    "handle_unexpected_error",
    "problem_from_domain_error",
    "summarize_errors",
]
