"""Exceptions raised by the Docker Hub client.

Every failure the client produces derives from `HubError` and carries a
`HubErrorKind`.  Callers should branch with the ``is_*`` predicates rather
than on the concrete class.  Transport failures from httpx are not wrapped
and propagate unchanged.
"""

from __future__ import annotations

from enum import Enum

import httpx

__all__ = [
    "AuthenticationError",
    "ForbiddenError",
    "HubError",
    "HubErrorKind",
    "LoginError",
    "NotFoundError",
    "OperationCancelledError",
    "RateLimitParseError",
    "StatusError",
    "TwoFactorError",
    "classify_response",
    "extract_message",
    "is_authentication_error",
    "is_cancelled",
    "is_forbidden",
    "is_login_error",
    "is_not_found",
    "is_rate_limit_parse_error",
    "is_status_error",
    "is_two_factor_failure",
]


class HubErrorKind(Enum):
    """Closed set of failure classes."""

    AUTHENTICATION = "authentication"
    LOGIN = "login"
    TWO_FACTOR = "two_factor"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    STATUS = "status"
    RATE_LIMIT_PARSE = "rate_limit_parse"
    CANCELLED = "cancelled"


class HubError(Exception):
    """Base class for all client failures."""

    kind: HubErrorKind = HubErrorKind.STATUS


class AuthenticationError(HubError):
    """No usable credentials could be resolved locally."""

    kind = HubErrorKind.AUTHENTICATION

    def __init__(self, message: str = "authentication error") -> None:
        super().__init__(message)


class LoginError(HubError):
    """The Hub rejected the username and password."""

    kind = HubErrorKind.LOGIN


class TwoFactorError(HubError):
    """The Hub rejected the second-factor code."""

    kind = HubErrorKind.TWO_FACTOR

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"failed to authenticate: {code}: {message}")


class ForbiddenError(HubError):
    kind = HubErrorKind.FORBIDDEN

    def __init__(self, message: str = "operation not permitted") -> None:
        super().__init__(message)


class NotFoundError(HubError):
    kind = HubErrorKind.NOT_FOUND

    def __init__(self, message: str = "resource not found") -> None:
        super().__init__(message)


class StatusError(HubError):
    """Any other non-2xx response."""

    kind = HubErrorKind.STATUS

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"bad status code {code}: {message}")


class RateLimitParseError(HubError):
    """A rate-limit header was present but not of the form ``<n>;w=<m>``."""

    kind = HubErrorKind.RATE_LIMIT_PARSE

    def __init__(self, header: str, value: str) -> None:
        self.header = header
        self.value = value
        super().__init__(f"bad {header} header: {value!r}")


class OperationCancelledError(HubError):
    """The user or an interrupt aborted the operation."""

    kind = HubErrorKind.CANCELLED

    def __init__(self, message: str = "canceled") -> None:
        super().__init__(message)


def extract_message(response: httpx.Response) -> str | None:
    """Return the ``message`` or ``detail`` field of a JSON error body."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for key in ("message", "detail"):
        msg = body.get(key)
        if isinstance(msg, str):
            return msg
    return None


def classify_response(response: httpx.Response) -> HubError:
    """Turn a non-2xx response into the matching `HubError`."""
    if response.status_code == httpx.codes.FORBIDDEN:
        return ForbiddenError()
    if response.status_code == httpx.codes.NOT_FOUND:
        return NotFoundError()
    message = extract_message(response)
    if message is None:
        message = response.reason_phrase
    return StatusError(response.status_code, message)


def _is_kind(err: BaseException | None, kind: HubErrorKind) -> bool:
    return isinstance(err, HubError) and err.kind == kind


def is_authentication_error(err: BaseException | None) -> bool:
    return _is_kind(err, HubErrorKind.AUTHENTICATION)


def is_login_error(err: BaseException | None) -> bool:
    return _is_kind(err, HubErrorKind.LOGIN)


def is_two_factor_failure(err: BaseException | None) -> bool:
    return _is_kind(err, HubErrorKind.TWO_FACTOR)


def is_forbidden(err: BaseException | None) -> bool:
    return _is_kind(err, HubErrorKind.FORBIDDEN)


def is_not_found(err: BaseException | None) -> bool:
    return _is_kind(err, HubErrorKind.NOT_FOUND)


def is_status_error(err: BaseException | None) -> bool:
    return _is_kind(err, HubErrorKind.STATUS)


def is_rate_limit_parse_error(err: BaseException | None) -> bool:
    return _is_kind(err, HubErrorKind.RATE_LIMIT_PARSE)


def is_cancelled(err: BaseException | None) -> bool:
    return _is_kind(err, HubErrorKind.CANCELLED)
