"""Error Hierarchy — typed, categorized exceptions for every Starter API failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (4xx) are recoverable; infrastructure errors (5xx) are critical
    - to_response() produces the ApiResponse envelope ({"success": false, "error": ...})
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with StarterError base: FastAPI global handler catches all
    - ErrorContext as dataclass: observability data without coupling to logging
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
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    CONFIGURATION = "configuration"
    STORAGE = "storage"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context attached to an error for logs and responses."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resource: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class StarterError(Exception):
    """Base exception for all Starter API errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
        details: list[dict] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status
        self.details = details

    def to_response(self) -> dict:
        """Convert to the ApiResponse error envelope."""
        body = {
            "success": False,
            "error": self.message,
            "code": self.code,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
        }
        if self.details:
            body["details"] = self.details
        if self.context.retry_after_ms is not None:
            body["retryAfterMs"] = self.context.retry_after_ms
        return body


# ─── Domain Errors (4xx) ────────────────────────────────────────

class InvalidPayloadError(StarterError):
    """Request body failed schema validation."""
    def __init__(
        self,
        message: str = "Invalid request data",
        details: list[dict] | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400, details,
        )


class AuthenticationError(StarterError):
    """Credentials or token rejected."""
    def __init__(self, message: str = "Authentication failed", context: ErrorContext | None = None):
        super().__init__(
            message, "AUTHENTICATION_FAILED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class ResourceNotFoundError(StarterError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.resource = resource_type
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ─── Infrastructure Errors (5xx) ────────────────────────────────

class ConfigurationError(StarterError):
    """Required setting missing or invalid."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )


class DatabaseError(StarterError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class IdentityProviderError(StarterError):
    """Identity provider unreachable or returned an unexpected response."""
    def __init__(
        self,
        message: str,
        provider_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Identity provider error ({provider_error_type}): {message}",
            "IDENTITY_PROVIDER_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 502,
        )
        self.provider_error_type = provider_error_type


class StorageError(StarterError):
    """Local key-value storage could not be read or written."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.ERROR, context, 500,
        )
