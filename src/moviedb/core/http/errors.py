from __future__ import annotations

from enum import Enum

from moviedb.core.logging.redact import redact_url


class ApiErrorKind(str, Enum):
    CONNECTION_ERROR = "connection_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    CLIENT_ERROR = "client_error"


class MovieDbError(RuntimeError):
    """Base error for every failed request made through the executor.

    Carries the target URL and, when known, the HTTP status, the raw response
    body and the underlying exception.
    """

    kind: ApiErrorKind

    def __init__(
        self,
        url: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.body = body
        self.cause = cause
        super().__init__(self._describe())

    def _describe(self) -> str:
        parts = [self.kind.value]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        parts.append(f"url={redact_url(self.url)}")
        if self.cause is not None:
            parts.append(f"cause={self.cause.__class__.__name__}")
        return " ".join(parts)


class MovieDbConnectionError(MovieDbError):
    """Transport or I/O failure, or a response without a status."""

    kind = ApiErrorKind.CONNECTION_ERROR


class MovieDbServiceUnavailableError(MovieDbError):
    """Server-side failure (5xx) or an unexpected fault while requesting."""

    kind = ApiErrorKind.SERVICE_UNAVAILABLE


class MovieDbClientError(MovieDbError):
    """Redirect or client-side status (3xx/4xx), including an exhausted 429."""

    kind = ApiErrorKind.CLIENT_ERROR


# Checked in order, first match wins. An upper bound of None is open-ended.
_STATUS_TABLE: tuple[tuple[int, int | None, type[MovieDbError]], ...] = (
    (0, 1, MovieDbConnectionError),
    (500, None, MovieDbServiceUnavailableError),
    (300, 500, MovieDbClientError),
)


def error_for_status(status_code: int) -> type[MovieDbError] | None:
    """Return the error class for ``status_code`` or None when it is a success."""
    for low, high, error_cls in _STATUS_TABLE:
        if status_code >= low and (high is None or status_code < high):
            return error_cls
    return None
