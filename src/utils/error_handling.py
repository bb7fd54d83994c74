"""Custom exceptions and helpers for consistent error responses."""

import json
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError


class AppError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, status_code=400)


class NotFoundError(AppError):
    """Raised when a requested resource is missing."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ConflictError(AppError):
    """Raised when a write would break a uniqueness rule."""

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message, status_code=409)


class InternalError(AppError):
    """Opaque server-side failure; the detail only goes to the logs."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, status_code=500)


def from_pydantic(exc: PydanticValidationError) -> ValidationError:
    """Collapse a pydantic error into a single client-facing message."""
    errors = exc.errors()
    if not errors:
        return ValidationError()
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Invalid input")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return ValidationError(f"{location}: {message}" if location else message)


def to_response(error: AppError, correlation_id: Optional[str] = None) -> Dict[str, Any]:
    """Convert an AppError into a Lambda proxy integration response."""
    body: Dict[str, Any] = {
        "success": False,
        "message": str(error),
        "status": "error",
    }
    if correlation_id:
        body["correlation_id"] = correlation_id
    return {
        "statusCode": error.status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }
