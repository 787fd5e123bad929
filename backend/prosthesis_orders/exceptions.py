"""
Prosthesis Orders Backend — Custom Exception Hierarchy
=======================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages, without leaking store details
       to the client.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and the store layer; caught by global handlers.

Exception Hierarchy:
    ProsthesisOrdersError (base)     → 500
    ├── ValidationError              → 400 Bad Request (client can fix)
    ├── ForbiddenError               → 403 Forbidden (wrong delete PIN)
    ├── StoreError                   → 500 Internal Server Error
    │   └── StoreUnavailableError    → startup-fatal (cannot reach/auth store)
    ├── NotificationError            → never reaches the client (logged only)
    └── ConfigurationError           → startup-fatal
"""

from typing import Any, Dict, Optional


class ProsthesisOrdersError(Exception):
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


class ValidationError(ProsthesisOrdersError):
    """
    Raised when client input fails validation.

    When:    Missing required order fields, missing or empty `ids` list on
             bulk update, non-object update payloads.
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


class ForbiddenError(ProsthesisOrdersError):
    """
    Raised when the caller is not allowed to perform the operation.

    When:    The PIN sent with a DELETE does not match DELETE_PIN.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "Operation not allowed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreError(ProsthesisOrdersError):
    """
    Raised when a document store operation fails.

    When:    Firestore read/write/commit raised, including updates of a
             document that does not exist.
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. The original
        exception is kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A storage error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreUnavailableError(StoreError):
    """
    Raised at startup when the store cannot be initialized or reached.

    When:    Credentials file missing/invalid, or the connectivity probe
             keeps failing after all attempts.
    Effect:  Aborts application startup.
    """

    def __init__(
        self,
        message: str = "The document store could not be initialized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotificationError(ProsthesisOrdersError):
    """
    Raised by mail clients when a notification could not be delivered.

    Never surfaces to API consumers: the notification dispatcher logs it and
    moves on. Delivery is best-effort and not retried.
    """

    def __init__(
        self,
        message: str = "Notification delivery failed",
        provider: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if provider:
            ctx["provider"] = provider
        super().__init__(message=message, context=ctx)
        self.provider = provider


class ConfigurationError(ProsthesisOrdersError):
    """
    Raised when required settings are missing or inconsistent.

    Effect:  Aborts application startup with the list of problems.
    """

    def __init__(
        self,
        message: str = "Invalid configuration",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
