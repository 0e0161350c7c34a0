from __future__ import annotations

import os

import pytest

from moviedb.core.http.client import reset_http_client


@pytest.fixture(autouse=True)
def clear_moviedb_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("MOVIEDB_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def fresh_shared_client():
    reset_http_client()
    yield
    reset_http_client()
