"""
FundFlow Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the different failure categories.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers registered in main.py turn them into the JSON
       error envelope with the matching HTTP status code.
Who:   Raised by services, auth dependencies and integration shims.

Exception Hierarchy:
    FundFlowError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── IntegrationError         → 500 (OCR, chat, image host, callbacks, email)
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class FundFlowError(Exception):
    """
    Base exception for all FundFlow application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info; returned as `details` for client errors,
                  logged only for server errors
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(FundFlowError):
    """
    Raised when client input fails validation (missing/invalid fields,
    bad file types, wrong API key, wrong OTP).
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(FundFlowError):
    """Missing, malformed or expired bearer token, or bad credentials."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(FundFlowError):
    """The caller is authenticated but may not perform this action."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(FundFlowError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    NotFoundError so routes never deal with HTTP status codes directly.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class ConflictError(FundFlowError):
    """A unique value (email, config type name) is already taken."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IntegrationError(FundFlowError):
    """
    Raised when an outbound integration fails.

    What:    Upstream API error, transport failure, or missing integration
             credentials.
    When:    OCR scan, chat push, image upload, approval callback, SMTP send.
    HTTP:    500 Internal Server Error. Calls are never retried.

    Attributes:
        service: Short integration name ("ocr", "line", "cloudinary", ...)
    """

    status_code = 500
    error_code = "integration_error"

    def __init__(
        self,
        service: str,
        message: str = "An external service request failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["service"] = service
        super().__init__(message=message, context=ctx)
        self.service = service


class DatabaseError(FundFlowError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; details stay in
    the server log.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
