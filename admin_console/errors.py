"""Failure taxonomy for pipeline results."""

from enum import Enum


class ErrorKind(str, Enum):
    NETWORK = "network"
    AUTH_EXPIRED = "auth-expired"
    BAD_REQUEST = "bad-request"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not-found"
    SERVER_ERROR = "server-error"
    HTTP_ERROR = "http-error"
    BUSINESS = "business"
    INVALID_RESPONSE = "invalid-response"


SUCCESS_MESSAGE = "Operation succeeded"
FAILURE_MESSAGE = "Operation failed"
NETWORK_ERROR_MESSAGE = "Network error, please check your connection"

DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NETWORK: NETWORK_ERROR_MESSAGE,
    ErrorKind.AUTH_EXPIRED: "Session expired, please log in again",
    ErrorKind.BAD_REQUEST: "Invalid parameters, please check your input",
    ErrorKind.FORBIDDEN: "You do not have permission to access this resource",
    ErrorKind.NOT_FOUND: "The requested resource does not exist",
    ErrorKind.SERVER_ERROR: "Server error, please try again later",
    ErrorKind.HTTP_ERROR: "Request failed, please try again later",
    ErrorKind.BUSINESS: FAILURE_MESSAGE,
    ErrorKind.INVALID_RESPONSE: "Unexpected response from server",
}

_STATUS_KINDS = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.AUTH_EXPIRED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
}


def classify_status(status: int) -> ErrorKind:
    """Map a non-2xx HTTP status onto the error taxonomy."""
    if status in _STATUS_KINDS:
        return _STATUS_KINDS[status]
    if status >= 500:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.HTTP_ERROR
