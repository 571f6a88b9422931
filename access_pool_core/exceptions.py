"""
Consolidated exception system with error codes, context, and correlation support.

Every error raised by the pool, the ledger and the services derives from
BaseError so the request boundary can turn any of them into a single
user-facing message while the full context goes to the log.
"""

import threading
import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

_thread_local = threading.local()


class ErrorCode(str, Enum):
    """Standardized error codes."""

    # System errors (1xxx)
    INTERNAL_ERROR = "1000"
    DATABASE_ERROR = "1001"
    CONFIGURATION_ERROR = "1003"

    # Validation errors (2xxx)
    VALIDATION_FAILED = "2000"
    INVALID_FORMAT = "2001"
    MISSING_REQUIRED = "2002"

    # Resource errors (3xxx)
    NOT_FOUND = "3000"
    DUPLICATE = "3001"
    CONFLICT = "3002"
    LIMIT_EXCEEDED = "3005"

    # Business logic errors (4xxx)
    INVALID_STATE_TRANSITION = "4001"
    PERMISSION_DENIED = "4003"


class BaseError(Exception):
    """Base exception with context, error codes, logging, and cause capture."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        """
        Initialize base error with rich context.

        Args:
            message: Human-readable error message
            error_code: Standardized error code from ErrorCode enum
            status_code: HTTP-like status code used to pick the log level
            cause: Original exception that caused this error
            **context: Additional context information
        """
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.error_id = str(uuid.uuid4())
        self.context = context

        correlation_id = get_correlation_id()
        if correlation_id:
            self.context["correlation_id"] = correlation_id

        self.context["error_id"] = self.error_id

        if cause:
            self.context["cause"] = {
                "type": type(cause).__name__,
                "message": str(cause),
                "traceback": traceback.format_exception(type(cause), cause, cause.__traceback__),
            }

        self._log_error()

        super().__init__(message)

    def _log_error(self) -> None:
        """Log error with appropriate level based on status code."""
        # Lazy import, the logger module imports config which imports nothing from here
        from .utils.logger import get_logger

        logger = get_logger()

        log_data = {
            "error_id": self.error_id,
            "error_code": self.error_code.value,
            "status_code": self.status_code,
            "error_message": self.message,
            "context": {k: v for k, v in self.context.items() if k not in ["cause", "traceback"]},
        }

        if self.status_code >= 500:
            logger.error(
                f"Error {self.error_code.value}: {self.message}", extra=log_data, exc_info=self.cause
            )
        elif self.status_code >= 400:
            logger.warning(f"Client error {self.error_code.value}: {self.message}", extra=log_data)
        else:
            logger.info(f"Error {self.error_code.value}: {self.message}", extra=log_data)

    def add_context(self, **kwargs: Any) -> "BaseError":
        """Add additional context to the error (fluent interface)."""
        self.context.update(kwargs)
        return self


# Layer-specific base exceptions
class RepositoryError(BaseError):
    """Storage layer errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        **context,
    ):
        super().__init__(message, error_code, status_code, cause, **context)


class ServiceError(BaseError):
    """Service layer errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
        **context,
    ):
        if operation:
            context["operation"] = operation
        super().__init__(message, error_code, 500, cause, **context)


class ValidationError(BaseError):
    """Validation errors."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        cause: Optional[Exception] = None,
        **context,
    ):
        if field:
            context["field"] = field
        super().__init__(message, error_code, 400, cause, **context)


# ==================== POOL AND LEDGER EXCEPTIONS ====================


class StorageTransientError(RepositoryError):
    """Backend call failed; the whole request is safe to retry from the top."""

    def __init__(self, message: str = "Storage temporarily unavailable", **kwargs):
        super().__init__(
            message=message, error_code=ErrorCode.DATABASE_ERROR, status_code=503, **kwargs
        )


class NoEntriesAvailableError(BaseError):
    """Raised when the credential pool has no unclaimed entries left."""

    def __init__(self, message: str = "No credentials available", **kwargs):
        super().__init__(
            message=message, error_code=ErrorCode.LIMIT_EXCEEDED, status_code=503, **kwargs
        )


class ConflictLostError(BaseError):
    """A conditional claim did not apply because another claimant won the entry."""

    def __init__(self, message: str = "Pool entry claimed concurrently", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.CONFLICT, status_code=409, **kwargs)


class DuplicateTokenError(RepositoryError):
    """Raised when a ledger insert collides with an existing token."""

    def __init__(self, message: str = "Token already exists", **kwargs):
        super().__init__(
            message=message, error_code=ErrorCode.DUPLICATE, status_code=409, **kwargs
        )


class PoolUploadError(RepositoryError):
    """A bulk insert batch failed; earlier batches remain committed."""

    def __init__(
        self,
        message: str = "Pool upload failed",
        batch_index: int = 0,
        inserted_count: int = 0,
        **kwargs,
    ):
        self.batch_index = batch_index
        self.inserted_count = inserted_count
        super().__init__(
            message=message,
            error_code=ErrorCode.DATABASE_ERROR,
            status_code=503,
            batch_index=batch_index,
            inserted_count=inserted_count,
            **kwargs,
        )


class TokenNotFoundError(BaseError):
    """Raised when a requested token does not exist."""

    def __init__(self, message: str = "Token not found", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.NOT_FOUND, status_code=404, **kwargs)


class TokenRevokedError(BaseError):
    """Raised when a revoked token is resolved."""

    def __init__(self, message: str = "Token has been revoked", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_STATE_TRANSITION,
            status_code=410,
            **kwargs,
        )


class PermissionDeniedError(BaseError):
    """Raised when a non-administrator invokes an administrator-only operation."""

    def __init__(self, message: str = "Permission denied", **kwargs):
        super().__init__(
            message=message, error_code=ErrorCode.PERMISSION_DENIED, status_code=403, **kwargs
        )


class MalformedInputError(ValidationError):
    """Uploaded content had zero usable lines."""

    def __init__(self, message: str = "No usable lines in upload", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.INVALID_FORMAT, **kwargs)


class CorruptPoolEntryError(ValidationError):
    """A claimed pool entry could not be parsed into login and secret."""

    def __init__(self, message: str = "Pool entry is not a usable credential", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.INVALID_FORMAT, **kwargs)


# Factory functions for common error patterns
def permission_denied(action: str, actor_id: str, **context) -> PermissionDeniedError:
    """
    Factory for permission denied errors.

    Args:
        action: Action that was denied (e.g. 'revoke', 'upload')
        actor_id: Actor that attempted the action
        **context: Additional context

    Returns:
        Configured PermissionDeniedError instance
    """
    return PermissionDeniedError(
        f"Permission denied: {action}",
        action=action,
        actor_id=actor_id,
        **context,
    )


def token_not_found(token: str, **context) -> TokenNotFoundError:
    """Factory for missing token errors."""
    return TokenNotFoundError(f"Token not found: {token}", token=token, **context)


# Correlation ID management
def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current thread."""
    _thread_local.correlation_id = correlation_id


def get_correlation_id() -> Optional[str]:
    """Get the current thread's correlation ID."""
    return getattr(_thread_local, "correlation_id", None)


def clear_correlation_id() -> None:
    """Clear the current thread's correlation ID."""
    if hasattr(_thread_local, "correlation_id"):
        delattr(_thread_local, "correlation_id")
