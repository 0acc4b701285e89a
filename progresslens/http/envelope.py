"""Uniform response envelope shared by every route."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


def envelope(data: Any = None, *, status: int = 200) -> Dict[str, Any]:
    return {"success": True, "httpStatus": status, "data": data, "error": None}


def error_envelope(status: int, error: Dict[str, Any]) -> Dict[str, Any]:
    return {"success": False, "httpStatus": status, "data": None, "error": error}


def ok(data: Any = None, *, status: int = 200, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(envelope(data, status=status), status_code=status, headers=headers)


__all__ = ["envelope", "error_envelope", "ok"]
