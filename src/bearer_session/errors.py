"""Error classes for bearer-session.

Every failure a caller can see is a ``SessionError``. Subclasses fix the
error code and, where it is known up front, the HTTP status. The
correlation ID carries the backend trace identifier when one was returned.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    import httpx


class ErrorCode(StrEnum):
    """Standardized error codes for bearer-session."""

    # Session errors (1xxx)
    UNAUTHORIZED = "AUTH_1001"
    UNAUTHENTICATED = "AUTH_1002"
    TOKEN_REFRESH_FAILED = "AUTH_1003"
    TOKEN_INVALID = "AUTH_1004"

    # Request errors (2xxx)
    REQUEST_FAILED = "REQ_2001"

    # Network errors (3xxx)
    NETWORK_ERROR = "NET_3001"
    TIMEOUT_ERROR = "NET_3002"

    # Server errors (5xxx)
    SERVER_ERROR = "SRV_5001"


class SessionError(Exception):
    """Base error for bearer-session with structured error information."""

    default_message: ClassVar[str] = "Session error"
    default_code: ClassVar[ErrorCode | None] = None
    default_status: ClassVar[int | None] = None

    def __init__(
        self,
        message: str | None = None,
        code: ErrorCode | str | None = None,
        *,
        status_code: int | None = None,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        code = code or self.default_code
        if code is None:
            raise TypeError(f"{type(self).__name__} needs an error code")
        self.message = message or self.default_message
        super().__init__(self.message)
        self.code = str(code)
        self.status_code = status_code if status_code is not None else self.default_status
        self.correlation_id = correlation_id
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "correlation_id": self.correlation_id,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class UnauthorizedError(SessionError):
    """The server answered 401 and the request cannot be recovered."""

    default_message = "Unauthorized"
    default_code = ErrorCode.UNAUTHORIZED
    default_status = 401


class UnauthenticatedError(SessionError):
    """No session exists; the user has to log in."""

    default_message = "Please log in to obtain full access"
    default_code = ErrorCode.UNAUTHENTICATED
    default_status = 401


class TokenRefreshError(SessionError):
    """The refresh call failed; the queued batch is rejected with this."""

    default_message = "Failed to refresh token"
    default_code = ErrorCode.TOKEN_REFRESH_FAILED


class TokenInvalidError(SessionError):
    """Token is empty or cannot be decoded."""

    default_message = "Token is invalid"
    default_code = ErrorCode.TOKEN_INVALID


class RequestError(SessionError):
    """Non-2xx response other than the ones handled by the pipeline."""

    default_message = "Request failed"
    default_code = ErrorCode.REQUEST_FAILED


class ServerError(SessionError):
    default_message = "Server error"
    default_code = ErrorCode.SERVER_ERROR
    default_status = 500


class NetworkError(SessionError):
    """The transport failed before any response arrived."""

    default_message = "Network request failed"
    default_code = ErrorCode.NETWORK_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            correlation_id=correlation_id,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class TimeoutError(SessionError):
    """The transport gave up waiting."""

    default_message = "Request timed out"
    default_code = ErrorCode.TIMEOUT_ERROR
    default_status = 408

    def __init__(
        self,
        message: str | None = None,
        *,
        correlation_id: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(
            message,
            correlation_id=correlation_id,
            details={"timeout_seconds": timeout_seconds} if timeout_seconds else None,
        )


def trace_id_of(response: httpx.Response | None, header: str) -> str | None:
    """Get the backend trace identifier from a response, if any."""
    if response is None:
        return None
    return response.headers.get(header)


def error_from_response(
    response: httpx.Response,
    *,
    trace_header: str = "x-encore-trace-id",
) -> SessionError:
    """Create the error a caller sees for a failed response.

    401 maps to ``UnauthorizedError``, 5xx to ``ServerError`` and any other
    status to ``RequestError``. The body's ``message`` field, when the body
    is a JSON object carrying one, ends up in ``details``.
    """
    status = response.status_code
    details: dict[str, Any] = {"url": str(response.request.url)}
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        details["message"] = body["message"]

    if status == 401:
        error_class: type[SessionError] = UnauthorizedError
        message = None
    elif status >= 500:
        error_class = ServerError
        message = f"Server error: {status}"
    else:
        error_class = RequestError
        message = f"Request failed with status {status}"
    return error_class(
        message,
        status_code=status,
        correlation_id=trace_id_of(response, trace_header),
        details=details,
    )
