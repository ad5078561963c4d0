"""
Travel Story Backend — Custom Exception Hierarchy
===================================================

What:  Application-specific exceptions for each failure class the API reports.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) map them to
       `{"error": true, "message": ...}` JSON bodies with the right status code.
Who:   Raised by services and the auth guard; caught by global handlers.

Exception Hierarchy:
    TravelStoryError (base)
    ├── ValidationError     → 400 Bad Request (missing or malformed input)
    ├── ConflictError       → 400 Bad Request (email already registered)
    ├── AuthError           → 401 Unauthorized (bad credentials, bad/missing token)
    ├── NotFoundError       → 404 Not Found (absent or owned by someone else)
    ├── FileStorageError    → 500 Internal Server Error
    └── DatabaseError       → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class TravelStoryError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TravelStoryError):
    """
    Raised when client input fails validation.

    When:    Required field missing or empty, non-numeric epoch timestamp,
             non-image upload, empty search query.
    HTTP:    400 Bad Request
    """

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


class ConflictError(TravelStoryError):
    """
    Raised when a write would violate a uniqueness rule.

    When:    create-account with an email that is already registered.
    HTTP:    400 Bad Request (kept at 400 for client compatibility)
    """

    def __init__(
        self,
        message: str = "User already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthError(TravelStoryError):
    """
    Raised when the caller cannot be authenticated.

    When:    Missing bearer token, expired/malformed/foreign-signed token,
             wrong email or password at login, token for a deleted user.
    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(TravelStoryError):
    """
    Raised when a requested resource does not exist for the caller.

    A story owned by another user produces exactly the same error as a story
    that does not exist at all; the context never carries the owner.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(TravelStoryError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, uploads directory not writable.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(TravelStoryError):
    """
    Raised when database operations fail unexpectedly.

    The message is written by the service and is safe to return; the driver
    error itself only goes to the server log through `context`.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
