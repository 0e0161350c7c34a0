from .client import HttpSettings, get_http_client, reset_http_client
from .errors import (
    ApiErrorKind,
    MovieDbClientError,
    MovieDbConnectionError,
    MovieDbError,
    MovieDbServiceUnavailableError,
    error_for_status,
)
from .executor import RequestExecutor, validate_response

__all__ = [
    "HttpSettings",
    "get_http_client",
    "reset_http_client",
    "RequestExecutor",
    "validate_response",
    "error_for_status",
    "ApiErrorKind",
    "MovieDbError",
    "MovieDbConnectionError",
    "MovieDbServiceUnavailableError",
    "MovieDbClientError",
]
