from __future__ import annotations

import logging
import math
import threading

import httpx

from .client import HttpSettings, get_http_client
from .errors import (
    MovieDbConnectionError,
    MovieDbError,
    MovieDbServiceUnavailableError,
    error_for_status,
)

STATUS_TOO_MANY_REQUESTS = 429
APPLICATION_JSON = "application/json"

_IO_ERRORS = (httpx.HTTPError, httpx.InvalidURL, OSError)

_READ_HEADERS = {"Accept": APPLICATION_JSON}
_WRITE_HEADERS = {"Accept": APPLICATION_JSON, "Content-Type": APPLICATION_JSON}

logger = logging.getLogger("moviedb.http")


def validate_response(response: httpx.Response, url: str) -> str:
    """Return the body of a successful response or raise the matching error.

    The outcome depends only on the status code, the body and ``url``. Reading
    the body is left to propagate its own I/O errors.
    """
    body = response.text
    error_cls = error_for_status(response.status_code)
    if error_cls is None:
        return body
    raise error_cls(url, status_code=response.status_code, body=body)


class RequestExecutor:
    """Runs GET, POST and DELETE requests against the remote JSON API.

    GET requests answered with 429 are retried with a linear backoff of
    ``retry_delay_s * attempt`` seconds, at most ``retry_max`` times. POST and
    DELETE are sent exactly once. Every outcome goes through
    :func:`validate_response`, so a call either returns the body text or raises
    one :class:`MovieDbError`.

    The executor keeps no per-request state; one instance may serve many
    threads as long as the underlying client does. A caller that wants to cut
    a backoff short passes its own ``interrupt`` event to :meth:`get` and sets
    it from any thread.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        retry_max: int | None = None,
        retry_delay_s: float | None = None,
    ) -> None:
        settings = HttpSettings.from_env()
        self._client = client if client is not None else get_http_client()
        self.retry_max = settings.retry_max if retry_max is None else max(0, retry_max)
        if retry_delay_s is None or not math.isfinite(retry_delay_s):
            self.retry_delay_s = settings.retry_delay_s
        else:
            self.retry_delay_s = min(HttpSettings.MAX_RETRY_DELAY_S, max(0.0, retry_delay_s))

    def get(self, url: str, *, interrupt: threading.Event | None = None) -> str:
        """GET ``url``, retrying on 429.

        Setting ``interrupt`` ends the backoff in progress and sends the retry at
        once. The event is cleared when the call starts and after each wake, so a
        signal never carries over to a later wait or a later call.
        """
        wake = interrupt if interrupt is not None else threading.Event()
        wake.clear()
        return self._execute("GET", url, _READ_HEADERS, wake=wake)

    def post(self, url: str, json_body: str) -> str:
        return self._execute("POST", url, _WRITE_HEADERS, content=json_body)

    def delete(self, url: str) -> str:
        return self._execute("DELETE", url, _WRITE_HEADERS)

    def _execute(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        *,
        content: str | None = None,
        wake: threading.Event | None = None,
    ) -> str:
        try:
            request = self._client.build_request(method, url, headers=headers, content=content)
            logger.debug("http_request", extra={"extra_fields": {"method": method, "url": url}})
            response = self._client.send(request)

            attempt = 0
            # Only GET passes a wake event; mutations are never retried.
            while wake is not None and response.status_code == STATUS_TOO_MANY_REQUESTS and attempt < self.retry_max:
                attempt += 1
                delay_s = self.retry_delay_s * attempt
                logger.warning(
                    "http_rate_limited",
                    extra={"extra_fields": {"method": method, "url": url, "attempt": attempt, "delay_s": delay_s}},
                )
                self._wait(delay_s, wake)
                response = self._client.send(request)

            return validate_response(response, url)
        except MovieDbError as exc:
            self._log_failure(method, exc)
            raise
        except _IO_ERRORS as exc:
            error: MovieDbError = MovieDbConnectionError(url, cause=exc)
            self._log_failure(method, error)
            raise error from exc
        except Exception as exc:
            error = MovieDbServiceUnavailableError(url, cause=exc)
            self._log_failure(method, error)
            raise error from exc

    @staticmethod
    def _wait(seconds: float, wake: threading.Event) -> None:
        if wake.wait(timeout=seconds):
            wake.clear()

    @staticmethod
    def _log_failure(method: str, error: MovieDbError) -> None:
        logger.warning("http_request_failed", extra={"extra_fields": {"method": method}, "api_error": error})
