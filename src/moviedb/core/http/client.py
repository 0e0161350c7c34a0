from __future__ import annotations

import math
import os
import threading
from dataclasses import dataclass

import httpx

_client: httpx.Client | None = None
_client_lock = threading.Lock()


def _env_number(name: str, default: float, *, minimum: float, maximum: float) -> float:
    """Read a number from the environment; unparsable or non-finite values give ``default``."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if not math.isfinite(value):
        return default
    return min(maximum, max(minimum, value))


@dataclass(frozen=True)
class HttpSettings:
    """Transport and retry settings, read from ``MOVIEDB_HTTP_*`` variables."""

    timeout_s: float = 15.0
    connect_timeout_s: float = 5.0
    user_agent: str = "moviedb-http/1.0"
    retry_max: int = 5
    retry_delay_s: float = 1.0

    # Upper bounds keep waits and timeouts representable by threading/socket timeouts.
    MAX_TIMEOUT_S = 600.0
    MAX_RETRY_MAX = 20
    MAX_RETRY_DELAY_S = 300.0

    @classmethod
    def from_env(cls) -> HttpSettings:
        defaults = cls()
        return cls(
            timeout_s=_env_number("MOVIEDB_HTTP_TIMEOUT_S", defaults.timeout_s, minimum=0.1, maximum=cls.MAX_TIMEOUT_S),
            connect_timeout_s=_env_number(
                "MOVIEDB_HTTP_CONNECT_TIMEOUT_S", defaults.connect_timeout_s, minimum=0.1, maximum=cls.MAX_TIMEOUT_S
            ),
            user_agent=os.getenv("MOVIEDB_HTTP_USER_AGENT") or defaults.user_agent,
            retry_max=int(
                _env_number("MOVIEDB_HTTP_RETRY_MAX", defaults.retry_max, minimum=0, maximum=cls.MAX_RETRY_MAX)
            ),
            retry_delay_s=_env_number(
                "MOVIEDB_HTTP_RETRY_DELAY_S", defaults.retry_delay_s, minimum=0.0, maximum=cls.MAX_RETRY_DELAY_S
            ),
        )

    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.timeout_s, connect=min(self.connect_timeout_s, self.timeout_s))


def get_http_client() -> httpx.Client:
    """Return the process-wide client, building it from the environment on first use."""
    global _client
    if _client is not None:
        return _client

    with _client_lock:
        if _client is None:
            settings = HttpSettings.from_env()
            _client = httpx.Client(timeout=settings.timeout(), headers={"User-Agent": settings.user_agent})
    return _client


def reset_http_client() -> None:
    """Close and forget the shared client so the next call rebuilds it from the environment."""
    global _client
    with _client_lock:
        if _client is not None:
            _client.close()
        _client = None
