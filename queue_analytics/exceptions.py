"""
Custom Exception Classes

This module defines the exception hierarchy for the queue analytics engine.
Every error carries the operation that failed so callers and logs can tell
which use-case raised it.
"""

from enum import Enum
from typing import Any, Dict, Optional


class QueueAnalyticsErrorType(Enum):
    """Categories of analytics errors"""
    NOT_FOUND = "not_found"
    OPERATION_FAILED = "operation_failed"
    VALIDATION_ERROR = "validation_error"
    UNAUTHORIZED = "unauthorized"
    INSUFFICIENT_DATA = "insufficient_data"
    UNKNOWN = "unknown"


class QueueAnalyticsError(Exception):
    """Base exception for all queue analytics errors"""

    def __init__(
        self,
        error_type: QueueAnalyticsErrorType,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        """
        Initialize analytics error.

        Args:
            error_type: Error category
            message: Human-readable error description
            operation: Operation that failed (e.g., 'optimizeQueueFlow')
            context: Input parameters of the failed operation
            cause: Underlying exception, if any
        """
        self.error_type = error_type
        self.message = message
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API error responses"""
        return {
            "error": self.message,
            "type": self.error_type.value,
            "operation": self.operation,
        }


class ValidationError(QueueAnalyticsError):
    """Raised when use-case input fails validation"""

    def __init__(
        self,
        message: str,
        field: str = None,
        operation: str = None,
        value: Any = None,
    ):
        """
        Initialize validation error.

        Args:
            message: Error description
            field: The field that failed validation
            operation: The operation whose input was invalid
            value: The value that failed validation
        """
        self.field = field
        self.value = value
        context = {field: value} if field else {}
        super().__init__(
            QueueAnalyticsErrorType.VALIDATION_ERROR,
            message,
            operation=operation,
            context=context,
        )


class GatewayError(QueueAnalyticsError):
    """Raised when the record gateway cannot serve a request"""

    def __init__(
        self,
        message: str,
        operation: str = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        if operation:
            message = f"Gateway {operation} failed: {message}"
        super().__init__(
            QueueAnalyticsErrorType.OPERATION_FAILED,
            message,
            operation=operation,
            context=context,
            cause=cause,
        )


class RecordFormatError(GatewayError):
    """Raised when a raw record cannot be converted to the data model"""

    def __init__(self, message: str, record_id: Any = None):
        self.record_id = record_id
        if record_id is not None:
            message = f"Malformed record {record_id}: {message}"
        super().__init__(message, context={"record_id": record_id})


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None):
        """
        Initialize configuration error.

        Args:
            message: Error description
            config_key: The configuration key that caused the error
        """
        self.config_key = config_key
        if config_key:
            message = f"Configuration error for '{config_key}': {message}"
        super().__init__(message)
