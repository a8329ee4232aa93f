"""Error Hierarchy — typed, categorized exceptions for all Ember failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are caller mistakes; StoreError (503) is the only
      infrastructure error the engines surface
    - Expected no-op outcomes (nothing to accept, relation already exists) are
      NOT errors — engines return False for those
      (routes translate False into NoOpOutcomeError at INFO severity)
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with EmberError base: FastAPI global handler catches all (ADR: uniform error shape)
    - TargetNotFoundError / RequesterNotFoundError subclass NotFoundError so callers
      can catch either the family or the precise side that is missing
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
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHENTICATION = "authentication"
    DATABASE = "database"
    CONFLICT = "conflict"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class EmberError(Exception):
    """Base exception for all Ember errors."""

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
                "context": {
                    "user_id": self.context.user_id,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class NotFoundError(EmberError):
    """Referenced user or pin does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str,
        context: ErrorContext | None = None, code: str = "RESOURCE_NOT_FOUND",
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            code, ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class TargetNotFoundError(NotFoundError):
    """The user a relationship operation points at does not exist."""
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__("User", user_id, context, code="TARGET_NOT_FOUND")


class RequesterNotFoundError(NotFoundError):
    """The caller's own identity does not resolve in the identity store."""
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__("User", user_id, context, code="REQUESTER_NOT_FOUND")


class SelfReferenceError(EmberError):
    """Operation targets the caller themselves where that is forbidden."""
    def __init__(self, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = operation
        super().__init__(
            f"Cannot {operation} with yourself",
            "SELF_REFERENCE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ctx, 400,
        )


class InvalidVisibilityError(EmberError):
    """Visibility value outside public/friends/private."""
    def __init__(self, value: object, context: ErrorContext | None = None):
        super().__init__(
            f"Unrecognized visibility '{value}' (expected public, friends or private)",
            "INVALID_VISIBILITY", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.value = value


class InvalidEmotionError(EmberError):
    """Emotion blank or longer than the pin column allows."""
    def __init__(self, value: object, context: ErrorContext | None = None):
        super().__init__(
            "Emotion must be 1 to 16 characters",
            "INVALID_EMOTION", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.value = value


class InvalidGeoParameterError(EmberError):
    """Out-of-range coordinate or negative radius."""
    def __init__(
        self, message: str, parameter: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "INVALID_GEO_PARAMETER", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.parameter = parameter


class UnauthenticatedError(EmberError):
    """Credential missing, malformed, expired or not signed by us."""
    def __init__(self, message: str = "Not authenticated", context: ErrorContext | None = None):
        super().__init__(
            message, "UNAUTHENTICATED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class InvalidCredentialsError(EmberError):
    """Login with unknown email or wrong password."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Invalid credentials", "INVALID_CREDENTIALS",
            ErrorCategory.AUTHENTICATION, ErrorSeverity.WARNING, context, 401,
        )


class DuplicateUserError(EmberError):
    """Registration collides with an existing username or email."""
    def __init__(self, field_name: str, context: ErrorContext | None = None):
        super().__init__(
            f"A user with this {field_name} already exists",
            "DUPLICATE_USER", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.field = field_name


class NoOpOutcomeError(EmberError):
    """A request the engine answered with False (nothing to accept, relation exists).

    Raised by routes only; engines never raise it.
    """
    def __init__(
        self, code: str, message: str, http_status: int,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.INFO, context, http_status,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StoreError(EmberError):
    """Persistent store operation failed. Opaque to the core; never retried."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Store {operation} failed: {message}",
            "STORE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
