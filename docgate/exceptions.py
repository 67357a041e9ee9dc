"""
DocGate — Custom Exception Hierarchy
======================================

What:  Application-specific exceptions for the error scenarios of the gateway.
How:   Each exception carries a client-safe message and an optional context dict.
       Global exception handlers (registered in main.py) turn them into JSON
       error responses with the matching HTTP status code.
Who:   Raised by the store connector, the collection resolver and the services.

Exception Hierarchy:
    GatewayError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── DatabaseError            → 500 Internal Server Error (details logged only)
    └── StoreUnavailableError    → 500 Internal Server Error (no connection yet)
"""

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """
    Base exception for all DocGate errors.

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


class ValidationError(GatewayError):
    """
    Raised when client input fails validation.

    When:    Invalid order payload, empty update body, non-numeric `max`,
             a collection name the driver refuses.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Invalid order data",
            "details": {"field": "lessonIDs"}
        }
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


class NotFoundError(GatewayError):
    """
    Raised when a requested document does not exist.

    Motor returns None / a zero match count for missing documents (not an
    exception); the service layer converts that into NotFoundError where a
    404 is wanted.
    """

    def __init__(
        self,
        resource: str = "document",
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


class DatabaseError(GatewayError):
    """
    Raised when a MongoDB operation fails.

    The message returned to the client is always generic ("Failed to insert
    document", ...). The driver's own error text goes into ``context`` and is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreUnavailableError(GatewayError):
    """
    Raised by the collection resolver when no store connection exists.

    HTTP:    500 Internal Server Error, before any route handler runs.
    """

    def __init__(
        self,
        message: str = "Database not connected",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
