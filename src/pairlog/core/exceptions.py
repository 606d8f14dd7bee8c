"""
Custom exceptions for the PairLog service.

Each exception carries the HTTP status and the client-facing error string,
so the API layer renders every failure through one handler.
"""

from typing import Any, Dict, Optional


class PairLogException(Exception):
    """Base exception for PairLog service."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        self.headers = headers or {}


class ValidationError(PairLogException):
    """Raised when an incoming record fails validation."""

    def __init__(self, message: str = "Invalid source_text", field: Optional[str] = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="validation_error",
            details={"field": field} if field else None,
        )


class PayloadTooLargeError(PairLogException):
    """Raised when a request body exceeds the configured ceiling."""

    def __init__(self, limit_bytes: int, message: str = "Payload too large") -> None:
        super().__init__(
            message=message,
            status_code=413,
            error_code="payload_too_large",
            details={"limit_bytes": limit_bytes},
        )


class RateLimitError(PairLogException):
    """Raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Too many requests, slow down.",
        retry_after: Optional[int] = None,
    ) -> None:
        details = {}
        headers = {}
        if retry_after:
            details["retry_after"] = retry_after
            headers["Retry-After"] = str(retry_after)

        super().__init__(
            message=message,
            status_code=429,
            error_code="rate_limit_exceeded",
            details=details,
            headers=headers,
        )


class WriteError(PairLogException):
    """Raised when appending to the dataset log fails."""

    def __init__(self, message: str = "WriteError", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=500,
            error_code="write_error",
            details=details,
        )


class WriterClosedError(PairLogException):
    """Raised when a write is submitted after shutdown has begun."""

    def __init__(self, message: str = "Service shutting down") -> None:
        super().__init__(
            message=message,
            status_code=503,
            error_code="writer_closed",
        )
