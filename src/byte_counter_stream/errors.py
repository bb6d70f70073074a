"""
Byte Counter Stream Error Model

Structured errors raised by the push and pull stream layers. Errors coming
from user sources and sinks are never wrapped; they travel through the
pipeline as the original exception.
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from enum import IntEnum


class ErrorCode(IntEnum):
    """Stream error codes."""

    OK = 0
    UNKNOWN = 1

    # Lifecycle errors (100-199)
    STREAM_CLOSED = 100
    STREAM_LOCKED = 101
    STREAM_ABORTED = 102
    STREAM_DESTROYED = 103

    # Data errors (200-299)
    INVALID_CHUNK = 200

    # Composition errors (300-399)
    PIPELINE_FAILED = 300


class StreamError(Exception):
    """
    Base class for all stream errors.

    Carries a code, optional details and the exception that caused it.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[BaseException] = None):
        """
        Initialize a stream error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result: Dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class StreamClosedError(StreamError):
    """Write or close attempted after the writable side finished."""

    def __init__(self, message: str = "Stream is closed",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[BaseException] = None):
        super().__init__(message, ErrorCode.STREAM_CLOSED, details, cause)


class StreamLockedError(StreamError):
    """Stream already has an active reader or writer."""

    def __init__(self, message: str = "Stream is locked",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[BaseException] = None):
        super().__init__(message, ErrorCode.STREAM_LOCKED, details, cause)


class StreamAbortedError(StreamError):
    """Stream was aborted or cancelled without an exception as reason."""

    def __init__(self, message: str = "Stream was aborted",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[BaseException] = None):
        super().__init__(message, ErrorCode.STREAM_ABORTED, details, cause)


class StreamDestroyedError(StreamError):
    """Push stream used after destroy()."""

    def __init__(self, message: str = "Stream was destroyed",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[BaseException] = None):
        super().__init__(message, ErrorCode.STREAM_DESTROYED, details, cause)


class InvalidChunkError(StreamError, TypeError):
    """Chunk is not a bytes-like object."""

    def __init__(self, message: str = "Chunk must be a bytes-like object",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[BaseException] = None):
        super().__init__(message, ErrorCode.INVALID_CHUNK, details, cause)


class PipelineError(StreamError):
    """Pipeline composition error."""

    def __init__(self, message: str = "Pipeline failed",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[BaseException] = None):
        super().__init__(message, ErrorCode.PIPELINE_FAILED, details, cause)


def as_exception(reason: Any) -> BaseException:
    """
    Turn an abort/cancel reason into an exception.

    Exceptions pass through unchanged so callers observe the original error.
    """
    if isinstance(reason, BaseException):
        return reason
    details = {"reason": reason} if reason is not None else None
    return StreamAbortedError(details=details)
