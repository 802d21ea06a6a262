"""Error Hierarchy — typed, categorized exceptions for all statebox failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Caller errors (400-level) never change a container's snapshot
    - Collaborator errors raised inside handlers are folded into state, not re-raised
    - to_response() produces REST envelope; to_sse_event() produces SSE envelope

Design Decisions:
    - Single hierarchy with StateBoxError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging
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
    CONFLICT = "conflict"
    DATABASE = "database"
    DATA_SOURCE = "data_source"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    store_name: str | None = None
    action: str | None = None
    path: str | None = None
    event_name: str | None = None
    debug_info: dict[str, Any] | None = None


class StateBoxError(Exception):
    """Base exception for all statebox errors."""

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
                    "store_name": self.context.store_name,
                    "action": self.context.action,
                    "path": self.context.path,
                    "event_name": self.context.event_name,
                },
            }
        }

    def to_sse_event(self) -> dict:
        """Convert to SSE error event."""
        return {
            "type": "error",
            "data": {
                "code": self.code,
                "message": self.message,
                "severity": self.severity.value,
                "recoverable": self.severity in (
                    ErrorSeverity.INFO, ErrorSeverity.WARNING,
                ),
            },
        }


# ─── Caller Errors (400-level) ──────────────────────────────────

class InvalidPathError(StateBoxError):
    """Path string does not match the dot/bracket grammar."""
    def __init__(self, path: str, reason: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.path = path
        super().__init__(
            f"Invalid path '{path}': {reason}",
            "INVALID_PATH", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.path = path
        self.reason = reason


class UnknownMutationError(StateBoxError):
    """Mutation discriminant is not handled by the container."""
    def __init__(
        self, action: object, store_name: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.action = None if action is None else str(action)
        ctx.store_name = store_name
        super().__init__(
            f"Store '{store_name}' has no handler for action '{action}'",
            "UNKNOWN_MUTATION", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.action = action


class InvalidMutationError(StateBoxError):
    """Mutation request failed schema validation."""
    def __init__(
        self, message: str, store_name: str,
        errors: list[dict] | None = None, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.store_name = store_name
        super().__init__(
            message, "INVALID_MUTATION", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.errors = errors or []


class ResourceNotFoundError(StateBoxError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class StoreConflictError(StateBoxError):
    """A store with the same name is already registered."""
    def __init__(self, store_name: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.store_name = store_name
        super().__init__(
            f"Store '{store_name}' is already registered",
            "STORE_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )


# ─── Collaborator Errors (500-level) ────────────────────────────

class DataSourceError(StateBoxError):
    """External data source failed while a handler awaited it."""
    def __init__(self, message: str, source: str, context: ErrorContext | None = None):
        super().__init__(
            f"Data source '{source}' failed: {message}",
            "DATA_SOURCE_ERROR", ErrorCategory.DATA_SOURCE,
            ErrorSeverity.WARNING, context, 503,
        )
        self.source = source


class DatabaseError(StateBoxError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
