"""Domain error taxonomy.

Every failure the service layer can signal is a ``DomainError`` subclass
carrying a machine-readable code, the HTTP status the boundary should use,
the side that caused it (client or server) and a details mapping for audit
logs. Engines and guards raise these; ``progresslens.http.problem`` is the
only place that turns them into responses.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class Origin:
    CLIENT = "Client"
    SERVER = "Server"


class DomainError(Exception):
    code: str = "UNKNOWN_ERROR"
    status: int = 500
    origin: str = Origin.SERVER
    title: str = "Internal Server Error"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        *,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        if code is not None:
            self.code = code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "origin": self.origin,
            "message": self.message,
            "details": self.details,
        }


class InvalidToken(DomainError):
    code = "INVALID_TOKEN"
    status = 401
    origin = Origin.CLIENT
    title = "Unauthorized"

    def __init__(self, reason: str = "invalid bearer token") -> None:
        super().__init__("Authorization header does not carry a valid token", {"reason": reason})


class NotFound(DomainError):
    code = "NOT_FOUND"
    status = 404
    origin = Origin.CLIENT
    title = "Not Found"

    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(
            f"{resource} '{resource_id}' was not found",
            {"resource": resource, "id": resource_id},
        )
        self.resource = resource
        self.resource_id = resource_id


class InsufficientRole(DomainError):
    code = "INSUFFICIENT_ROLE"
    status = 403
    origin = Origin.CLIENT
    title = "Forbidden"

    def __init__(self, user_id: str, display_name: str, role: str, required: str) -> None:
        super().__init__(
            f"{display_name} (ID: {user_id}) has role {role}; {required} is required",
            {"userId": user_id, "userDisplayName": display_name, "role": role, "required": required},
        )


class OwnershipViolation(DomainError):
    code = "OWNERSHIP_VIOLATION"
    status = 403
    origin = Origin.CLIENT
    title = "Forbidden"

    def __init__(self, user_id: str, display_name: str, resource: str, resource_id: str) -> None:
        super().__init__(
            f"{display_name} does not own {resource} '{resource_id}'",
            {
                "userId": user_id,
                "userDisplayName": display_name,
                "resource": resource,
                "resourceId": resource_id,
            },
        )


class GuestNotAllowed(DomainError):
    code = "GUEST_NOT_ALLOWED"
    status = 403
    origin = Origin.CLIENT
    title = "Forbidden"

    def __init__(self, user_id: str, display_name: str) -> None:
        super().__init__(
            f"Guest user {display_name} (ID: {user_id}) may not perform this operation",
            {"userId": user_id, "userDisplayName": display_name},
        )


class OrderSetMismatch(DomainError):
    code = "ORDER_SET_MISMATCH"
    status = 400
    origin = Origin.CLIENT
    title = "Bad Request"


class ValidationError(DomainError):
    code = "VALIDATION_ERROR"
    status = 400
    origin = Origin.CLIENT
    title = "Bad Request"


class DomainRuleViolation(DomainError):
    code = "DOMAIN_RULE_VIOLATION"
    status = 400
    origin = Origin.CLIENT
    title = "Bad Request"


class DatabaseOperationError(DomainError):
    code = "DB_OPERATION_ERROR"
    status = 500
    origin = Origin.SERVER
    title = "Internal Server Error"


__all__ = [
    "DatabaseOperationError",
    "DomainError",
    "DomainRuleViolation",
    "GuestNotAllowed",
    "InsufficientRole",
    "InvalidToken",
    "NotFound",
    "OrderSetMismatch",
    "Origin",
    "OwnershipViolation",
    "ValidationError",
]
