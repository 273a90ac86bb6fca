"""Error taxonomy for the Bitbucket API client.

Every failure leaving the client is a single exception type, ``BitbucketError``,
tagged with an ``ErrorKind``. Callers branch on ``error.kind`` instead of on a
class hierarchy.
"""

from enum import Enum
from typing import Any, Mapping, Optional

DEFAULT_ERROR_MESSAGE = "An error occurred"


class ErrorKind(str, Enum):
    """Classification of client failures."""

    CONFIGURATION = "configuration"  # Bad or missing credentials/config
    AUTHENTICATION = "authentication"  # 401
    PERMISSION = "permission"  # 403
    NOT_FOUND = "not_found"  # 404
    RATE_LIMIT = "rate_limit"  # 429
    API = "api"  # Any other HTTP error status
    TRANSPORT = "transport"  # No response received


_STATUS_KINDS = {
    401: ErrorKind.AUTHENTICATION,
    403: ErrorKind.PERMISSION,
    404: ErrorKind.NOT_FOUND,
    429: ErrorKind.RATE_LIMIT,
}


class BitbucketError(Exception):
    """A classified failure raised by the Bitbucket client."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.API,
        status_code: Optional[int] = None,
        retry_after: Optional[int] = None,
        response: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.retry_after = retry_after
        self.response = response

    def __repr__(self) -> str:
        return (
            f"BitbucketError(kind={self.kind.value!r}, status_code={self.status_code!r}, "
            f"message={self.message!r})"
        )


def configuration_error(message: str) -> BitbucketError:
    """Build the error raised for invalid credentials or configuration."""
    return BitbucketError(message, kind=ErrorKind.CONFIGURATION)


def transport_error(message: str) -> BitbucketError:
    """Build the error raised when no HTTP response was received."""
    return BitbucketError(message or "Network error occurred", kind=ErrorKind.TRANSPORT)


def extract_error_message(body: Any) -> str:
    """Pull a human readable message out of an error response body.

    Precedence: raw string body, then ``error.message``, then ``message``,
    then a generic fallback.
    """
    if isinstance(body, str):
        return body

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(body.get("message"), str):
            return body["message"]

    return DEFAULT_ERROR_MESSAGE


def parse_retry_after(headers: Optional[Mapping[str, str]]) -> Optional[int]:
    """Read the ``Retry-After`` header as whole seconds, if numeric."""
    if not headers:
        return None
    value = headers.get("Retry-After") or headers.get("retry-after")
    if value is None:
        return None
    value = value.strip()
    if not value.isdecimal():
        return None
    return int(value)


def classify_http_error(
    status: int,
    body: Any,
    headers: Optional[Mapping[str, str]] = None,
) -> BitbucketError:
    """Map an HTTP error response onto a ``BitbucketError``."""
    message = extract_error_message(body)
    kind = _STATUS_KINDS.get(status, ErrorKind.API)

    if kind is ErrorKind.NOT_FOUND:
        return BitbucketError(f"Resource not found: {message}", kind=kind, status_code=status)
    if kind is ErrorKind.RATE_LIMIT:
        return BitbucketError(
            message,
            kind=kind,
            status_code=status,
            retry_after=parse_retry_after(headers),
        )
    if kind is ErrorKind.API:
        return BitbucketError(message, kind=kind, status_code=status, response=body)
    return BitbucketError(message, kind=kind, status_code=status)
