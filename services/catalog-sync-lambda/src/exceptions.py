"""
Custom exceptions for the catalog sync pipeline.
Provides structured error handling with enough context to tell which stage of a run failed.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from enum import Enum


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors for routing and handling."""
    SOURCE = "source"
    DECODING = "decoding"
    ENCODING = "encoding"
    REMOTE_STORE = "remote_store"
    VERIFICATION = "verification"
    CONFIGURATION = "configuration"


@dataclass
class ErrorContext:
    """Rich context for error tracking and debugging."""
    correlation_id: Optional[str] = None
    run_id: Optional[str] = None
    product_id: Optional[str] = None
    field_name: Optional[str] = None
    record_index: Optional[int] = None
    table_name: Optional[str] = None
    vector_store_id: Optional[str] = None
    file_id: Optional[str] = None
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    additional_data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert context to dictionary for logging."""
        return {
            "correlation_id": self.correlation_id,
            "run_id": self.run_id,
            "product_id": self.product_id,
            "field_name": self.field_name,
            "record_index": self.record_index,
            "table_name": self.table_name,
            "vector_store_id": self.vector_store_id,
            "file_id": self.file_id,
            "timestamp": self.timestamp,
            **self.additional_data,
        }


class CatalogSyncError(Exception):
    """Base exception for all catalog sync errors."""

    stage = "unknown"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.REMOTE_STORE,
        retryable: bool = False,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.severity = severity
        self.category = category
        self.retryable = retryable
        self.original_exception = original_exception

    def to_dict(self) -> dict:
        """Serialize exception for logging and the run result."""
        return {
            "error_type": self.__class__.__name__,
            "stage": self.stage,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "retryable": self.retryable,
            "context": self.context.to_dict(),
            "original_exception": str(self.original_exception) if self.original_exception else None,
        }


class SourceFetchError(CatalogSyncError):
    """Raised when the catalog table cannot be read."""

    stage = "fetch"

    def __init__(
        self,
        message: str,
        table_name: str,
        operation: str = "Scan",
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        ctx = context or ErrorContext()
        ctx.table_name = table_name
        ctx.additional_data["aws_service"] = "DynamoDB"
        ctx.additional_data["operation"] = operation

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.SOURCE,
            retryable=True,
            original_exception=original_exception,
        )
        self.table_name = table_name
        self.operation = operation


class DecodeError(CatalogSyncError):
    """Raised when a raw record cannot be mapped onto a Product."""

    stage = "decode"

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        product_id: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        ctx = context or ErrorContext()
        ctx.field_name = field_name
        ctx.product_id = product_id

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.DECODING,
            retryable=False,
            original_exception=original_exception,
        )
        self.field_name = field_name


class EncodeError(CatalogSyncError):
    """Raised when the reshaped catalog cannot be serialized."""

    stage = "encode"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            context=context,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.ENCODING,
            retryable=False,
            original_exception=original_exception,
        )


class RemoteProtocolError(CatalogSyncError):
    """Raised when a remote store call fails during a sync state."""

    stage = "sync"

    def __init__(
        self,
        message: str,
        state: str,
        operation: str,
        stale_file_removed: bool = False,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
        category: ErrorCategory = ErrorCategory.REMOTE_STORE,
    ):
        ctx = context or ErrorContext()
        ctx.additional_data["state"] = state
        ctx.additional_data["operation"] = operation
        ctx.additional_data["stale_file_removed"] = stale_file_removed

        super().__init__(
            message=message,
            context=ctx,
            # Losing the old file without a replacement needs an operator.
            severity=ErrorSeverity.CRITICAL if stale_file_removed else ErrorSeverity.HIGH,
            category=category,
            retryable=True,
            original_exception=original_exception,
        )
        self.state = state
        self.operation = operation
        self.stale_file_removed = stale_file_removed


class VerificationError(RemoteProtocolError):
    """Raised when an uploaded file is not visible in the vector store afterwards."""

    def __init__(
        self,
        message: str,
        file_id: str,
        vector_store_id: str,
        stale_file_removed: bool = False,
        context: Optional[ErrorContext] = None,
    ):
        ctx = context or ErrorContext()
        ctx.file_id = file_id
        ctx.vector_store_id = vector_store_id

        super().__init__(
            message=message,
            state="VERIFY",
            operation="list_container_files",
            stale_file_removed=stale_file_removed,
            context=ctx,
            category=ErrorCategory.VERIFICATION,
        )
        self.file_id = file_id
        self.vector_store_id = vector_store_id


class ConfigurationError(CatalogSyncError):
    """Raised when configuration is invalid or missing."""

    stage = "configuration"

    def __init__(
        self,
        message: str,
        config_key: str,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        ctx = context or ErrorContext()
        ctx.additional_data["config_key"] = config_key

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
            original_exception=original_exception,
        )
        self.config_key = config_key


class RemoteStoreCallError(Exception):
    """Raised by a remote store client when a single call fails."""

    def __init__(self, message: str, operation: str):
        super().__init__(message)
        self.operation = operation
