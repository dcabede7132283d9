"""Custom exception hierarchy for StoryFeed.

This module defines a consistent exception hierarchy that enables:
- Structured error responses with error codes
- Consistent HTTP status code mapping
- Distinguishing caller mistakes from upstream outages

Usage:
    from storyfeed.core.exceptions import InvalidArgumentError

    raise InvalidArgumentError("page must be >= 1", field="page")
"""

from typing import Any


class StoryFeedError(Exception):
    """Base exception for all StoryFeed errors.

    All custom exceptions should inherit from this class to enable
    consistent error handling and response formatting.

    Attributes:
        code: Machine-readable error code (e.g., "INVALID_ARGUMENT")
        message: Human-readable error message
        status_code: HTTP status code to return
        details: Additional error details (optional)
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Override default message
            code: Override default error code
            details: Additional error details
        """
        if message:
            self.message = message
        if code:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self, request_id: str | None = None) -> dict[str, Any]:
        """Convert exception to API error response format.

        Args:
            request_id: Request correlation ID

        Returns:
            Error response dictionary
        """
        error: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if request_id:
            error["request_id"] = request_id
        if self.details:
            error["details"] = self.details
        return {"error": error}


# =============================================================================
# Validation Errors (400)
# =============================================================================


class ValidationError(StoryFeedError):
    """Raised when input validation fails."""

    code: str = "VALIDATION_ERROR"
    message: str = "Validation error"
    status_code: int = 400

    def __init__(
        self,
        message: str | None = None,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with optional field information."""
        if details is None:
            details = {}
        if field:
            details["field"] = field
        super().__init__(message=message, details=details if details else None)


class InvalidArgumentError(ValidationError):
    """Raised when a caller-supplied argument is out of range.

    Detected before any upstream I/O and never retried.
    """

    code: str = "INVALID_ARGUMENT"
    message: str = "Invalid argument"


# =============================================================================
# External Service Errors (502, 503)
# =============================================================================


class ExternalServiceError(StoryFeedError):
    """Base class for external service errors."""

    code: str = "EXTERNAL_SERVICE_ERROR"
    message: str = "External service error"
    status_code: int = 502


class TransientFetchError(ExternalServiceError):
    """Raised when the upstream story source cannot be read.

    The core never retries; the error propagates to the caller untouched.
    """

    code: str = "UPSTREAM_UNAVAILABLE"
    message: str = "The story source is temporarily unavailable"
    status_code: int = 503

    def __init__(
        self,
        message: str | None = None,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the upstream path that failed."""
        if details is None:
            details = {}
        if path:
            details["path"] = path
        super().__init__(message=message, details=details if details else None)


class UpstreamConnectionError(TransientFetchError):
    """Raised when the upstream host cannot be reached."""

    code: str = "UPSTREAM_CONNECTION_FAILED"
    message: str = "Could not connect to the story source"


class UpstreamTimeoutError(TransientFetchError):
    """Raised when an upstream request times out."""

    code: str = "UPSTREAM_TIMEOUT"
    message: str = "The story source did not respond in time"


class UpstreamStatusError(TransientFetchError):
    """Raised when the upstream answers with a non-2xx status."""

    code: str = "UPSTREAM_BAD_STATUS"
    message: str = "The story source returned an error"

    def __init__(
        self,
        status_code: int,
        path: str | None = None,
        message: str | None = None,
    ) -> None:
        """Initialize with the upstream HTTP status.

        Args:
            status_code: HTTP status returned by the upstream
            path: Upstream path that was requested
            message: Override default message
        """
        self.upstream_status = status_code
        if not message:
            message = f"The story source returned HTTP {status_code}"
        super().__init__(
            message=message,
            path=path,
            details={"upstream_status": status_code},
        )


class MalformedResponseError(TransientFetchError):
    """Raised when an upstream payload does not have the expected shape."""

    code: str = "UPSTREAM_MALFORMED_RESPONSE"
    message: str = "The story source returned an unexpected payload"
