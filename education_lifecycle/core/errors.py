"""Error Hierarchy — typed, categorized exceptions for all lifecycle failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Per-record failures (RecordUpdateError) are absorbed by the sweep and only
      counted; run-level failures (CandidateFetchError, MembershipSettingsError)
      abort the run and reach the caller
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with LifecycleError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    operation_id: str | None = None
    record_id: str | None = None
    program: str | None = None
    status_code: int | None = None
    retry_after_ms: int | None = None


class LifecycleError(Exception):
    """Base exception for all education lifecycle errors."""

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
                    "operation_id": self.context.operation_id,
                    "record_id": self.context.record_id,
                    "program": self.context.program,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class SweepConfigurationError(LifecycleError):
    """Invalid sweep parameters (batch size, schedule expression, ...)."""
    def __init__(self, message: str, setting: str, context: ErrorContext | None = None):
        super().__init__(
            message, "SWEEP_CONFIGURATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.setting = setting


class ResourceNotFoundError(LifecycleError):
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

class RecordStoreError(LifecycleError):
    """Record store request failed (after retries, where retryable)."""
    def __init__(
        self,
        message: str,
        operation: str,
        status_code: int | None = None,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.status_code = status_code
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Record store {operation} failed: {message}",
            "RECORD_STORE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.operation = operation
        self.status_code = status_code


class CandidateFetchError(LifecycleError):
    """Candidate set could not be fetched — the run cannot start."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Unable to fetch candidate records: {message}",
            "CANDIDATE_FETCH_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 503,
        )


class MembershipSettingsError(LifecycleError):
    """Membership expiry date lookup failed — the run cannot evaluate safely."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Unable to read membership expiry date: {message}",
            "MEMBERSHIP_SETTINGS_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 503,
        )


class RecordUpdateError(LifecycleError):
    """Single record category update failed. Counted, never aborts a run."""
    def __init__(self, record_id: str, message: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.record_id = record_id
        super().__init__(
            f"Category update for record '{record_id}' failed: {message}",
            "RECORD_UPDATE_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.record_id = record_id


class DatabaseError(LifecycleError):
    """Run ledger database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
