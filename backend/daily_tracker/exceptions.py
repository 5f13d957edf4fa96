"""
Daily Tracker Backend — Custom Exception Hierarchy
====================================================

What:  Application-specific exceptions mapped to HTTP responses by the
       global handlers registered in main.py.
How:   Each exception carries a user-facing message and an optional context
       dict. Context is logged server-side and returned as `details` only
       for client errors (4xx).

Exception Hierarchy:
    TrackerError (base)            → 500
    ├── ValidationError            → 400
    │   └── DuplicateError         → 400 (username taken, task URL repeated)
    ├── AuthenticationError        → 401
    ├── NotFoundError              → 404
    └── EmailDeliveryError         → never surfaces; caught by the OTP flow

Durable-store faults have no exception class here: the storage layer
recovers from them by switching to memory (see storage/fallback.py).
"""

from typing import Any, Dict, Optional


class TrackerError(Exception):
    """
    Base exception for all Daily Tracker application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TrackerError):
    """
    Raised when client input fails a business rule.

    HTTP: 400 Bad Request. `field` names the offending payload field when
    one can be identified.
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


class DuplicateError(ValidationError):
    """
    Raised when a create would repeat a value that must be unique.

    When:  Registering an existing username; creating a task whose
           normalized URL matches one of the caller's tasks.
    HTTP:  400 Bad Request
    """


class AuthenticationError(TrackerError):
    """
    Raised when the caller has no valid session or supplied bad credentials.

    HTTP: 401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Not authenticated",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(TrackerError):
    """
    Raised when a requested resource does not exist.

    When:  Unknown job/task/note id (or one owned by another user), unknown
           user during password reset or mobile login.
    HTTP:  404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource.capitalize()} not found"
            if resource_id:
                message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class EmailDeliveryError(TrackerError):
    """
    Raised by the email client when the provider rejects or cannot be reached.

    Callers in the OTP flow catch it, log it and keep the stored code, so it
    never fails the enclosing request.
    """

    def __init__(
        self,
        message: str = "Email delivery failed",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code
