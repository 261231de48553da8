"""
Standardized error handling for the patient validation engine.

Rule failures (missing fields, bad formats) are data and never pass
through here. This module covers the exceptional paths: catalog
misconfiguration, record store failures and engine defects.
"""

import asyncio
import traceback
from typing import Optional, Any, Dict, Callable, Awaitable
from enum import Enum
import logging


class ErrorLevel(Enum):
    """Error severity levels."""
    CRITICAL = "critical"  # Engine cannot serve validations
    ERROR = "error"  # Operation failed, engine can continue
    WARNING = "warning"  # Operation succeeded with issues
    INFO = "info"  # Informational message


class ErrorCode(Enum):
    """Standardized error codes for different error types."""

    # Catalog Errors (1xxx)
    CATALOG_NOT_FOUND = 1001
    CATALOG_PARSE_ERROR = 1002
    CATALOG_INVALID_RULE = 1003
    CATALOG_INVALID_PATTERN = 1004
    CATALOG_UNKNOWN_FIELD = 1005
    CATALOG_UNKNOWN_PREDICATE = 1006
    CATALOG_UNKNOWN_CATEGORY = 1007
    CATALOG_DUPLICATE_RULE = 1008

    # Validation Errors (2xxx)
    RECORD_VALIDATION_FAILED = 2001

    # Record Store Errors (3xxx)
    RECORD_FETCH_FAILED = 3001
    RECORD_NOT_FOUND = 3002
    RECORD_FETCH_TIMEOUT = 3003
    RECORD_MALFORMED = 3004

    # System Errors (4xxx)
    UNEXPECTED_ERROR = 4001


class ValidationEngineError(Exception):
    """Base exception class for validation engine errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        level: ErrorLevel = ErrorLevel.ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize engine error.

        Args:
            message: Human-readable error message
            code: Error code from ErrorCode enum
            level: Severity level from ErrorLevel enum
            details: Additional error details as dictionary
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.level = level
        self.details = details or {}
        self.cause = cause

        if cause:
            self.details['original_error'] = str(cause)
            self.details['error_type'] = type(cause).__name__
            self.details['traceback'] = ''.join(
                traceback.format_exception(type(cause), cause, cause.__traceback__)
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            'message': self.message,
            'code': self.code.value,
            'level': self.level.value,
            'details': {k: v for k, v in self.details.items() if k != 'traceback'}
        }


class CatalogConfigurationError(ValidationEngineError):
    """Raised when the rule catalog cannot be loaded as a whole."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CATALOG_INVALID_RULE,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            code=code,
            level=ErrorLevel.CRITICAL,
            details=details,
            cause=cause
        )


class RecordFetchError(ValidationEngineError):
    """Raised by record store adapters when a record cannot be fetched."""

    def __init__(
        self,
        record_id: str,
        reason: str,
        code: ErrorCode = ErrorCode.RECORD_FETCH_FAILED,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            message=f"Could not fetch record '{record_id}': {reason}",
            code=code,
            level=ErrorLevel.ERROR,
            details={'record_id': record_id, 'reason': reason},
            cause=cause
        )
        self.record_id = record_id
        self.reason = reason


class ErrorResult:
    """
    Standardized result wrapper for operations that may fail.

    Used where a failure has to be carried as a value (one failed record
    fetch or validation must not abort a whole batch).
    """

    def __init__(
        self,
        success: bool,
        value: Optional[Any] = None,
        error: Optional[ValidationEngineError] = None
    ):
        self.success = success
        self.value = value
        self.error = error

    @classmethod
    def ok(cls, value: Any) -> 'ErrorResult':
        """Create a successful result."""
        return cls(success=True, value=value, error=None)

    @classmethod
    def fail(cls, error: ValidationEngineError) -> 'ErrorResult':
        """Create a failed result."""
        return cls(success=False, value=None, error=error)


class ErrorHandler:
    """Centralized error handler with logging."""

    def __init__(self, logger: Optional[Any] = None):
        """
        Initialize error handler.

        Args:
            logger: Logger instance to use (creates default if None)
        """
        self.logger = logger or logging.getLogger(__name__)

    def handle(self, error: ValidationEngineError) -> None:
        """
        Handle an error by logging it appropriately.

        Args:
            error: The error to handle
        """
        log_message = f"[{error.code.name}] {error.message}"

        details = {k: v for k, v in error.details.items() if k != 'traceback'}
        if details:
            log_message += f" | Details: {details}"

        if error.level == ErrorLevel.CRITICAL:
            self.logger.critical(log_message)
        elif error.level == ErrorLevel.ERROR:
            self.logger.error(log_message)
        elif error.level == ErrorLevel.WARNING:
            self.logger.warning(log_message)
        else:
            self.logger.info(log_message)

    def _convert(self, exc: Exception, code: ErrorCode) -> ValidationEngineError:
        return ValidationEngineError(
            message=f"Unexpected error: {exc}",
            code=code,
            level=ErrorLevel.ERROR,
            cause=exc
        )

    def wrap_operation(
        self,
        operation: Callable[..., Any],
        *args,
        error_code: ErrorCode = ErrorCode.UNEXPECTED_ERROR,
        **kwargs
    ) -> ErrorResult:
        """
        Wrap an operation in error handling.

        Args:
            operation: The operation to execute
            *args: Arguments for the operation
            error_code: Code used when an unexpected exception is converted
            **kwargs: Keyword arguments for the operation

        Returns:
            ErrorResult with the operation result or error
        """
        try:
            return ErrorResult.ok(operation(*args, **kwargs))
        except ValidationEngineError as e:
            self.handle(e)
            return ErrorResult.fail(e)
        except Exception as e:
            engine_error = self._convert(e, error_code)
            self.handle(engine_error)
            return ErrorResult.fail(engine_error)

    async def wrap_async(
        self,
        operation: Callable[..., Awaitable[Any]],
        *args,
        error_code: ErrorCode = ErrorCode.UNEXPECTED_ERROR,
        **kwargs
    ) -> ErrorResult:
        """
        Await a coroutine function, capturing failures as an ErrorResult.

        Timeouts are reported with RECORD_FETCH_TIMEOUT. Cancellation is
        never captured.
        """
        try:
            return ErrorResult.ok(await operation(*args, **kwargs))
        except ValidationEngineError as e:
            self.handle(e)
            return ErrorResult.fail(e)
        except asyncio.TimeoutError as e:
            engine_error = ValidationEngineError(
                message="Operation timed out",
                code=ErrorCode.RECORD_FETCH_TIMEOUT,
                level=ErrorLevel.ERROR,
                cause=e
            )
            self.handle(engine_error)
            return ErrorResult.fail(engine_error)
        except Exception as e:
            engine_error = self._convert(e, error_code)
            self.handle(engine_error)
            return ErrorResult.fail(engine_error)


# Convenience functions for common error scenarios

def catalog_error(message: str, code: ErrorCode, **details: Any) -> CatalogConfigurationError:
    """Create a catalog configuration error."""
    return CatalogConfigurationError(message=message, code=code, details=details)


def record_not_found_error(record_id: str) -> RecordFetchError:
    """Create a record not found error."""
    return RecordFetchError(
        record_id=record_id,
        reason="record not found",
        code=ErrorCode.RECORD_NOT_FOUND
    )


def malformed_record_error(record_id: str, cause: Exception) -> RecordFetchError:
    """Create an error for a payload that is not a usable patient record."""
    return RecordFetchError(
        record_id=record_id,
        reason="record payload is malformed",
        code=ErrorCode.RECORD_MALFORMED,
        cause=cause
    )
