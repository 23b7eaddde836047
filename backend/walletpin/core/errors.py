"""Error Hierarchy — typed, categorized exceptions for all walletpin failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Storage errors are critical (503); PIN outcome errors are 4xx
    - to_response() produces the REST envelope
    - No PIN, digest, or salt ever appears in a message

Design Decisions:
    - Single hierarchy with WalletPinError base: FastAPI global handler catches all
    - PinCredentialManager catches these and collapses them to booleans; they reach
      HTTP clients only when raised outside the manager (e.g. readiness, misconfiguration)
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
    AUTHENTICATION = "authentication"
    RESOURCE_NOT_FOUND = "resource_not_found"
    STORAGE = "storage"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    device_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class WalletPinError(Exception):
    """Base exception for all walletpin errors."""

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


# ─── PIN Errors (400-level) ─────────────────────────────────────

class InvalidPinFormatError(WalletPinError):
    """PIN rejected by the format policy before any storage access."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid PIN format: {reason}",
            "INVALID_PIN_FORMAT", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.reason = reason


class PinMismatchError(WalletPinError):
    """Candidate PIN did not match the stored digest."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "PIN does not match",
            "PIN_MISMATCH", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class PinNotConfiguredError(WalletPinError):
    """No PIN record exists for the user on either store."""
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"No wallet PIN configured for user '{user_id}'",
            "PIN_NOT_CONFIGURED", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.INFO, context, 404,
        )
        self.user_id = user_id


class ResourceNotFoundError(WalletPinError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageUnavailableError(WalletPinError):
    """A storage backend was unreachable or failed mid-operation."""
    def __init__(
        self,
        backend: str,
        operation: str,
        message: str | None = None,
        context: ErrorContext | None = None,
        code: str = "STORAGE_UNAVAILABLE",
        category: ErrorCategory = ErrorCategory.STORAGE,
    ):
        super().__init__(
            message or f"{backend} store {operation} failed",
            code, category, ErrorSeverity.CRITICAL, context, 503,
        )
        self.backend = backend
        self.operation = operation


class DatabaseError(StorageUnavailableError):
    """Database operation failed (remote document store)."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            "remote", operation,
            message=f"Database {operation} failed: {message}",
            context=context, code="DATABASE_ERROR",
            category=ErrorCategory.DATABASE,
        )


class UnsupportedPinSchemeError(StorageUnavailableError):
    """A stored scheme tag this service cannot verify against.

    The record exists but cannot be read here; it is not a missing PIN.
    """
    def __init__(self, scheme: str, backend: str, context: ErrorContext | None = None):
        super().__init__(
            backend, "parse",
            message=f"Unsupported PIN scheme tag {scheme[:32]!r}",
            context=context, code="UNSUPPORTED_PIN_SCHEME",
        )
        self.scheme = scheme
