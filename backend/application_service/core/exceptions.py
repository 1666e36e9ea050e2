"""
Domain errors raised by the application service.

Every error carries the HTTP status and the stable error code used in the
`{"error": ..., "message": ...}` response body, so routes and services can
raise them directly and `main.py` renders them in one place.
"""
from __future__ import annotations

from typing import Any


class ApplicationServiceError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, *, details: dict[str, Any] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class InvalidInput(ApplicationServiceError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class PayloadTooLarge(InvalidInput):
    status_code = 413
    code = "PAYLOAD_TOO_LARGE"
    default_message = "File too large"


class InvalidState(ApplicationServiceError):
    status_code = 400
    code = "INVALID_STATE"
    default_message = "Resource is not in a valid state for this operation"


class Forbidden(ApplicationServiceError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Forbidden"


class NotFound(ApplicationServiceError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class Conflict(ApplicationServiceError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Resource conflict"


class DependencyUnavailable(ApplicationServiceError):
    status_code = 500
    code = "DEPENDENCY_UNAVAILABLE"
    default_message = "A required service is unavailable"


class DependencyDataInvalid(ApplicationServiceError):
    status_code = 500
    code = "DEPENDENCY_DATA_INVALID"
    default_message = "A required service returned invalid data"


class StorageError(ApplicationServiceError):
    status_code = 500
    code = "STORAGE_ERROR"
    default_message = "Could not save the application"
