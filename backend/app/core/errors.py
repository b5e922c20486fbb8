"""Domain errors raised by services and rendered by the API error handlers.

Services stay transport-agnostic and raise these; ``create_app`` turns them
into the common ``{"ok": false, "error_code", "error_message"}`` payload.
"""

from __future__ import annotations

from typing import Any


class QuizMasterError(Exception):
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str = "request failed", *, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error_code": self.error_code, "error_message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class AuthenticationRequired(QuizMasterError):
    status_code = 401
    error_code = "unauthorized"

    def __init__(self, message: str = "not authenticated"):
        super().__init__(message)


class AuthorizationDenied(QuizMasterError):
    status_code = 403
    error_code = "forbidden"

    def __init__(self, message: str = "forbidden"):
        super().__init__(message)


class NotFound(QuizMasterError):
    status_code = 404
    error_code = "not_found"

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        details = {"resource": resource, "id": resource_id} if resource_id is not None else None
        super().__init__(message, details=details)


class ValidationFailed(QuizMasterError):
    status_code = 400
    error_code = "validation_failed"


class AttemptStateError(QuizMasterError):
    """The requested transition is not allowed from the current attempt state."""

    status_code = 409
    error_code = "attempt_state"


class InternalFailure(QuizMasterError):
    status_code = 500
    error_code = "internal_error"
