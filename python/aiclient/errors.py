"""Client error taxonomy and retry classification.

Error classes:
- ConfigurationError: Missing key, unknown provider, bad env (construction time)
- RequestTimeoutError: One attempt exceeded its deadline
- RetryError: Retryable failures exhausted the retry budget
- StreamingNotSupportedError: Provider has no streaming capability
- StreamingError: Failure while iterating a stream
- ProviderResponseError: Provider answered 2xx with an unusable body

Classification (``is_retryable_error``):
- HTTP 429 or any 5xx → retryable
- Connection reset or drop, transport timeout, name resolution failure → retryable
  (causes are followed, so a ConnectError is retried only for those reasons)
- Anything else, including no recognizable status or code → not retryable

A guard timeout (RequestTimeoutError) has neither a status code nor a
network error code, so it is not retryable.
"""

import errno
import socket

import httpx

RETRYABLE_NETWORK_CODES = frozenset({"ECONNRESET", "ETIMEDOUT", "ENOTFOUND"})
RETRYABLE_ERRNOS = frozenset({errno.ECONNRESET, errno.ETIMEDOUT})


class AIClientError(Exception):
    """Base exception for client errors.

    Attributes:
        message: Human-readable error message
        provider: The provider the error relates to (if known)
        status_code: HTTP status code (if the failure carried one)
        cause: The underlying exception (if any)
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ):
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)


class ConfigurationError(AIClientError):
    """Invalid or missing configuration. Never retried."""


class RequestTimeoutError(AIClientError):
    """A single attempt did not finish within its deadline."""

    def __init__(self, message: str = "Request timeout", provider: str | None = None):
        super().__init__(message, provider=provider)


class RetryError(AIClientError):
    """Retryable failures exhausted the configured retry count.

    Attributes:
        retries: Number of retries attempted (excludes the initial attempt)
    """

    def __init__(
        self,
        message: str,
        retries: int,
        provider: str | None = None,
        cause: BaseException | None = None,
    ):
        self.retries = retries
        super().__init__(message, provider=provider, cause=cause)


class StreamingNotSupportedError(AIClientError):
    """The active provider cannot stream."""


class StreamingError(AIClientError):
    """A stream failed while being iterated."""


class ProviderResponseError(AIClientError):
    """The provider returned a success status with an unusable body."""


def extract_status_code(error: BaseException) -> int | None:
    """Find an HTTP-style status code on an exception.

    Looks at ``status_code``, ``status``, then ``response.status_code``.
    """
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code

    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value

    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int) and not isinstance(value, bool):
        return value

    return None


# Transport errors httpx raises when an established connection is dropped
CONNECTION_DROPPED_ERRORS = (httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError)


def _exception_chain(error: BaseException):
    """Yield ``error``, its causes/contexts, and members of exception groups."""
    seen: set[int] = set()
    pending = [error]
    while pending:
        exc = pending.pop()
        if exc is None or id(exc) in seen:
            continue
        seen.add(id(exc))
        yield exc
        if isinstance(exc, BaseExceptionGroup):
            pending.extend(exc.exceptions)
        pending.extend((exc.__cause__, exc.__context__))


def _is_transient_os_error(error: BaseException) -> bool:
    if isinstance(error, (ConnectionResetError, socket.gaierror)):
        return True

    code = getattr(error, "code", None)
    if isinstance(code, str) and code in RETRYABLE_NETWORK_CODES:
        return True

    err_no = getattr(error, "errno", None)
    return isinstance(err_no, int) and err_no in RETRYABLE_ERRNOS


def _is_network_error(error: BaseException) -> bool:
    if isinstance(error, httpx.TimeoutException):
        return True
    if isinstance(error, CONNECTION_DROPPED_ERRORS):
        return True

    # A refused or unreachable connect is final; only name resolution,
    # reset and timeout causes are transient.
    return any(_is_transient_os_error(exc) for exc in _exception_chain(error))


def is_retryable_error(error: BaseException | None) -> bool:
    """Classify a failed attempt as transient (retry) or fatal (raise).

    Args:
        error: The exception raised by one attempt.

    Returns:
        True for rate limits, server errors and network transport failures.
    """
    if error is None:
        return False

    status_code = extract_status_code(error)
    if status_code:
        return status_code == 429 or 500 <= status_code < 600

    return _is_network_error(error)
