"""
Durable Cache - Core Error Types

Defines the exception hierarchy for the durable cache.
All exceptions inherit from DurableCacheError for consistent error handling.

Propagation rules:
- EncodeError, StorageWriteError and StorageDeleteError reach the caller
- DecodeError and StorageReadError are absorbed by the cache as "no value"
- Nothing is retried automatically; see is_retryable_error()
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Standard error codes carried by every DurableCacheError.

    Used for structured logging and caller-side error handling.
    """

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Codec errors
    ENCODE_FAILED = "ENCODE_FAILED"
    DECODE_FAILED = "DECODE_FAILED"

    # Storage errors
    STORAGE_READ_FAILED = "STORAGE_READ_FAILED"
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"
    STORAGE_DELETE_FAILED = "STORAGE_DELETE_FAILED"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DurableCacheError(Exception):
    """Base exception for all durable cache errors."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logs and error reports."""
        return {
            "error": self.__class__.__name__,
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(DurableCacheError):
    """Raised when configuration is invalid or a backend cannot be built."""

    error_code = ErrorCode.CONFIGURATION_ERROR


class CodecError(DurableCacheError):
    """Base exception for encode/decode failures."""


class EncodeError(CodecError):
    """Raised when a value cannot be turned into bytes."""

    error_code = ErrorCode.ENCODE_FAILED


class DecodeError(CodecError):
    """Raised when bytes cannot be turned back into a value."""

    error_code = ErrorCode.DECODE_FAILED


class StorageError(DurableCacheError):
    """Base exception for persistent store failures."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        backend: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        error_details = dict(details or {})
        if key is not None:
            error_details["key"] = key
        if backend is not None:
            error_details["backend"] = backend
        super().__init__(message, error_details)
        self.key = key
        self.backend = backend


class StorageReadError(StorageError):
    """Raised when the store medium fails while reading a record."""

    error_code = ErrorCode.STORAGE_READ_FAILED


class StorageWriteError(StorageError):
    """Raised when the store medium fails while writing a record."""

    error_code = ErrorCode.STORAGE_WRITE_FAILED


class StorageDeleteError(StorageError):
    """Raised when the store medium fails while deleting a record."""

    error_code = ErrorCode.STORAGE_DELETE_FAILED


def is_retryable_error(error: Exception) -> bool:
    """
    Check if an error is transient and worth retrying by the caller.

    Args:
        error: Exception to check

    Returns:
        True if error is a storage failure caused by a transient condition
    """
    # Codec and configuration errors are deterministic
    if not isinstance(error, StorageError):
        return False

    cause = error.__cause__
    if isinstance(cause, (ConnectionError, TimeoutError)):
        return True

    # Check for common transient error indicators
    error_msg = f"{error} {cause or ''}".lower()
    transient_indicators = [
        "timeout",
        "timed out",
        "connection",
        "temporarily",
        "unavailable",
        "database is locked",
        "busy",
    ]
    return any(indicator in error_msg for indicator in transient_indicators)
