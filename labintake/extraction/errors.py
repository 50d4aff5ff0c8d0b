"""Maps extraction failures onto a small, reportable error taxonomy."""

import asyncio
from enum import Enum


class ErrorType(str, Enum):
    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    GATEWAY_TIMEOUT = "gateway_timeout"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    UNKNOWN = "unknown"

    @property
    def transient(self) -> bool:
        return self in (ErrorType.TIMEOUT, ErrorType.RATE_LIMIT, ErrorType.GATEWAY_TIMEOUT)


_STATUS_MAP: dict[int, ErrorType] = {
    408: ErrorType.TIMEOUT,
    413: ErrorType.PAYLOAD_TOO_LARGE,
    429: ErrorType.RATE_LIMIT,
    504: ErrorType.GATEWAY_TIMEOUT,
    529: ErrorType.RATE_LIMIT,  # provider "overloaded"
}

_MESSAGE_PATTERNS: tuple[tuple[tuple[str, ...], ErrorType], ...] = (
    (("gateway timeout", "504"), ErrorType.GATEWAY_TIMEOUT),
    (("timeout", "timed out"), ErrorType.TIMEOUT),
    (("rate limit", "rate_limit", "too many requests", "overloaded"), ErrorType.RATE_LIMIT),
    (("too large", "413"), ErrorType.PAYLOAD_TOO_LARGE),
)


def classify_status(status_code: int) -> ErrorType:
    if status_code in _STATUS_MAP:
        return _STATUS_MAP[status_code]
    if 500 <= status_code < 600:
        return ErrorType.SERVER_ERROR
    if 400 <= status_code < 500:
        return ErrorType.CLIENT_ERROR
    return ErrorType.UNKNOWN


def status_code_of(exc: BaseException) -> int | None:
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def classify_error(exc: BaseException) -> ErrorType:
    """Classify by transport status code first, then by message pattern."""
    status = status_code_of(exc)
    if status is not None:
        return classify_status(status)
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        return ErrorType.TIMEOUT

    message = str(exc).lower()
    for needles, error_type in _MESSAGE_PATTERNS:
        if any(needle in message for needle in needles):
            return error_type
    return ErrorType.UNKNOWN
