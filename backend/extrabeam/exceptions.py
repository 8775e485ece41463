"""
ExtraBeam Backend - Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers (registered in main.py) map them to HTTP status
       codes and a JSON body: {"error", "message", "details", "request_id"}.
Who:   Raised by services, dependencies and middleware.

Exception Hierarchy:
    ExtraBeamError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── PaymentServiceError      → 502 Bad Gateway
    ├── EmailDeliveryError       → 503 Service Unavailable
    ├── CircuitBreakerOpenError  → 503 Service Unavailable
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class ExtraBeamError(Exception):
    """
    Base exception for all ExtraBeam application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only for 4xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ExtraBeamError):
    """
    Raised when client input breaks a business rule.

    Schema-level problems (wrong types, missing JSON fields) are rejected by
    FastAPI with 422 before reaching the services; this one covers the rules
    the services enforce (unknown status, duplicate invoice number, ...).
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


class AuthenticationError(ExtraBeamError):
    """Missing, malformed or expired bearer token, or bad credentials."""

    def __init__(
        self,
        message: str = "Authentification requise",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(ExtraBeamError):
    """The caller is authenticated but does not own the target resource."""

    def __init__(
        self,
        message: str = "Accès interdit",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(ExtraBeamError):
    """
    Raised when a requested resource does not exist.

    Callers either name the resource (`NotFoundError("Mission", "12")`) or
    pass the exact user-facing message (`NotFoundError(message="Slot non trouvé")`).
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(ExtraBeamError):
    """A unique value (e-mail, slug) is already taken."""

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(ExtraBeamError):
    """Could not read or write a file on the storage volume."""

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PaymentServiceError(ExtraBeamError):
    """
    Raised when a Stripe API call fails.

    HTTP 502: the request was valid, the upstream payment provider was not.
    """

    def __init__(
        self,
        message: str = "Le service de paiement est indisponible",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class EmailDeliveryError(ExtraBeamError):
    """
    Raised when a transactional e-mail could not be delivered.

    When:    Brevo rejected the message, retries were exhausted, or no API
             key is configured.
    HTTP:    503 Service Unavailable (with Retry-After when known)
    """

    def __init__(
        self,
        message: str = "E-mail delivery failed",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(ExtraBeamError):
    """
    Raised when the mail circuit breaker is OPEN.

    How circuit breaker works:
        CLOSED (normal) → failures increment counter
        → After N failures → OPEN (reject all calls for recovery_timeout seconds)
        → After the timeout → HALF-OPEN (allow one test call)
        → If test succeeds → CLOSED
        → If test fails → OPEN again
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"E-mail service is temporarily unavailable due to repeated failures. "
            f"It will be retried automatically in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class DatabaseError(ExtraBeamError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the SQL error is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(ExtraBeamError):
    """Client sent too many requests within the rate limit window."""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
