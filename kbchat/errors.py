"""Client-observed failure taxonomy.

Every transport failure is classified into exactly one ``ErrorKind`` and raised as the
matching ``ApiError`` subclass. ``ValidationRejectedError`` is raised before any request
is built, so it never reaches the network.
"""

from enum import Enum

import httpx


class ErrorKind(str, Enum):
    """Failure classification shared by the transport and feature code."""

    AUTH_EXPIRED = "auth-expired"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not-found"
    SERVER_ERROR = "server-error"
    NETWORK_UNREACHABLE = "network-unreachable"
    MALFORMED_REQUEST = "malformed-request"
    VALIDATION_REJECTED = "validation-rejected"
    OTHER = "other"


class KbChatError(Exception):
    """Base class for all client errors."""

    kind: ErrorKind = ErrorKind.OTHER

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationRejectedError(KbChatError):
    """An operation was refused locally, before any network call."""

    kind = ErrorKind.VALIDATION_REJECTED


class ApiError(KbChatError):
    """A request did not complete successfully."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        detail: object | None = None,
        path: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail
        self.path = path

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, "
            f"status_code={self.status_code!r}, path={self.path!r})"
        )


class AuthExpiredError(ApiError):
    kind = ErrorKind.AUTH_EXPIRED


class ForbiddenError(ApiError):
    kind = ErrorKind.FORBIDDEN


class NotFoundError(ApiError):
    kind = ErrorKind.NOT_FOUND


class ServerError(ApiError):
    kind = ErrorKind.SERVER_ERROR


class NetworkUnreachableError(ApiError):
    kind = ErrorKind.NETWORK_UNREACHABLE


class MalformedRequestError(ApiError):
    kind = ErrorKind.MALFORMED_REQUEST


class OtherApiError(ApiError):
    kind = ErrorKind.OTHER


_ERRORS_BY_KIND: dict[ErrorKind, type[ApiError]] = {
    ErrorKind.AUTH_EXPIRED: AuthExpiredError,
    ErrorKind.FORBIDDEN: ForbiddenError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.SERVER_ERROR: ServerError,
    ErrorKind.NETWORK_UNREACHABLE: NetworkUnreachableError,
    ErrorKind.MALFORMED_REQUEST: MalformedRequestError,
    ErrorKind.OTHER: OtherApiError,
}

# User-facing notice per kind; ``OTHER`` prefers the server's own message.
USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.AUTH_EXPIRED: "Your session has expired, please sign in again",
    ErrorKind.FORBIDDEN: "You do not have permission to access this resource",
    ErrorKind.NOT_FOUND: "The requested resource does not exist",
    ErrorKind.SERVER_ERROR: "The server encountered an internal error",
    ErrorKind.NETWORK_UNREACHABLE: "Network connection failed, please check your network",
    ErrorKind.MALFORMED_REQUEST: "The request could not be built",
    ErrorKind.OTHER: "Request failed",
}


def classify_response(status_code: int) -> ErrorKind | None:
    """Classify an HTTP status code.

    Returns:
        None for 2xx/3xx responses, otherwise the matching kind.
    """
    if status_code < 400:
        return None
    if status_code == 401:
        return ErrorKind.AUTH_EXPIRED
    if status_code == 403:
        return ErrorKind.FORBIDDEN
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code >= 500:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.OTHER


def classify_exception(exc: Exception) -> ErrorKind:
    """Classify an exception raised while building or sending a request.

    Protocol misuse on our side (bad URL, unsupported scheme, invalid headers or a body
    that cannot be encoded) is a malformed request; every other transport error means
    no response was received.
    """
    if isinstance(
        exc,
        (
            httpx.InvalidURL,
            httpx.UnsupportedProtocol,
            httpx.LocalProtocolError,
            TypeError,
            ValueError,
        ),
    ):
        return ErrorKind.MALFORMED_REQUEST
    if isinstance(exc, httpx.RequestError):
        return ErrorKind.NETWORK_UNREACHABLE
    return ErrorKind.OTHER


def error_for(
    kind: ErrorKind,
    message: str | None = None,
    *,
    status_code: int | None = None,
    detail: object | None = None,
    path: str | None = None,
) -> ApiError:
    """Build the typed error for a kind."""
    error_cls = _ERRORS_BY_KIND.get(kind, OtherApiError)
    return error_cls(
        message or USER_MESSAGES[kind], status_code=status_code, detail=detail, path=path
    )
