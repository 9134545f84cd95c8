"""Error Hierarchy: typed, categorized exceptions for every PlaceShare failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (4xx) carry specific messages; dependency and auth failures
      carry generic ones (no internal cause in user-facing text)
    - to_response() produces the REST envelope consumed by api/error_handlers.py

Design Decisions:
    - Single hierarchy with PlaceShareError base: one global handler catches all
    - TokenError and InvalidCredentialsError never say which check failed
    - DuplicateEmailError is a client error (422), not a server error
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    CONFLICT = "conflict"
    CONSISTENCY = "consistency"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context attached to an error for logs and the response envelope."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    place_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class PlaceShareError(Exception):
    """Base exception for all PlaceShare errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
            }
        }


# ─── Client Errors (400-level) ──────────────────────────────────

class ValidationError(PlaceShareError):
    """Malformed input."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 422,
        )
        self.field = field


class NotFoundError(PlaceShareError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str,
        message: str | None = None, context: ErrorContext | None = None,
    ):
        super().__init__(
            message or f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class PlaceNotFoundError(NotFoundError):
    def __init__(self, place_id: str, context: ErrorContext | None = None):
        super().__init__(
            "Place", place_id, "Place not found for given id.", context,
        )


class OwnerNotFoundError(NotFoundError):
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__(
            "User", user_id, "User not found for provided id.", context,
        )


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__(
            "User", user_id, "Place not found for given user id.", context,
        )


class ForbiddenError(PlaceShareError):
    """Requester is not the owner of the resource."""
    def __init__(self, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"You are not authorized to {action} this place.",
            "FORBIDDEN", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 401,
        )
        self.action = action


class DuplicateEmailError(PlaceShareError):
    """Signup attempted with an email that is already registered."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Email address already exists. Please login instead.",
            "DUPLICATE_EMAIL", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 422,
        )


class InvalidCredentialsError(PlaceShareError):
    """Login failed: unknown email or wrong password (indistinguishable)."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Could not log you in. Please check your credentials.",
            "INVALID_CREDENTIALS", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 403,
        )


class TokenError(PlaceShareError):
    """Token missing, malformed, expired, badly signed, or signing impossible."""
    def __init__(self, reason: str = "invalid", context: ErrorContext | None = None):
        super().__init__(
            "Authentication failed.",
            "UNAUTHENTICATED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )
        # Kept for logs only, never rendered.
        self.reason = reason


# ─── Dependency / Infrastructure Errors (500-level) ─────────────

class CredentialError(PlaceShareError):
    """Password hashing primitive failed."""
    def __init__(self, operation: str, context: ErrorContext | None = None):
        super().__init__(
            "Could not process credentials. Please try again.",
            "CREDENTIAL_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class ConsistencyError(PlaceShareError):
    """Atomic scope could not commit; every write in it was rolled back."""
    def __init__(self, operation: str, context: ErrorContext | None = None):
        super().__init__(
            "Operation failed. Please try again.",
            "CONSISTENCY_ERROR", ErrorCategory.CONSISTENCY,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class StorageError(PlaceShareError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            "Something went wrong. Please try again.",
            "STORAGE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.detail = message
        self.operation = operation


class GeocodeError(PlaceShareError):
    """Address could not be resolved to coordinates."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            "Could not find location for the specified address.",
            "GEOCODE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 500,
        )
        self.detail = message


class AssetError(PlaceShareError):
    """Asset store could not write or release a file."""
    def __init__(self, message: str, path: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            "Could not process the uploaded file.",
            "ASSET_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.ERROR, context, 500,
        )
        self.detail = message
        self.path = path
