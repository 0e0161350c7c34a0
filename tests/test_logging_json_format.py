from __future__ import annotations

import io
import json
import logging
from logging.handlers import RotatingFileHandler

from moviedb.core.http.errors import MovieDbClientError, MovieDbConnectionError
from moviedb.core.logging.context import log_context
from moviedb.core.logging.json_formatter import JSONFormatter
from moviedb.core.logging.setup import configure_logging


def test_logging_json_line_with_context() -> None:
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())

    logger = logging.getLogger("moviedb.test.json")
    logger.handlers = []
    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.addHandler(handler)

    with log_context(correlation_id="c1", request_id="r1"):
        logger.info("hello", extra={"extra_fields": {"status_code": 404}})
    logger.info("outside")

    first, second = [json.loads(line) for line in stream.getvalue().strip().splitlines()]
    assert first["msg"] == "hello"
    assert first["level"] == "INFO"
    assert first["logger"] == "moviedb.test.json"
    assert first["correlation_id"] == "c1"
    assert first["request_id"] == "r1"
    assert first["status_code"] == 404
    assert "ts_iso_utc" in first
    assert "correlation_id" not in second


def _format(record_factory) -> dict:
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger = logging.getLogger("moviedb.test.errors")
    logger.handlers = [handler]
    logger.setLevel(logging.INFO)
    logger.propagate = False
    record_factory(logger)
    return json.loads(stream.getvalue().strip())


def test_api_error_is_flattened_and_url_redacted() -> None:
    error = MovieDbClientError(
        "https://api.themoviedb.org/3/account?api_key=k1&session_id=s1",
        status_code=401,
        body='{"status_code": 3}',
    )

    payload = _format(
        lambda logger: logger.warning(
            "http_request_failed", extra={"extra_fields": {"method": "GET"}, "api_error": error}
        )
    )

    assert payload["method"] == "GET"
    assert payload["kind"] == "client_error"
    assert payload["status_code"] == 401
    assert payload["url"] == "https://api.themoviedb.org/3/account?api_key=***&session_id=***"
    assert "body" not in payload


def test_exc_info_api_error_skips_stack() -> None:
    cause = ConnectionRefusedError("refused")
    error = MovieDbConnectionError("https://api.themoviedb.org/3/movie/1?api_key=k1", cause=cause)

    def log_it(logger: logging.Logger) -> None:
        try:
            raise error
        except MovieDbConnectionError:
            logger.exception("lookup failed")

    payload = _format(log_it)

    assert payload["kind"] == "connection_error"
    assert payload["cause"] == "ConnectionRefusedError: refused"
    assert payload["url"].endswith("api_key=***")
    assert "stack" not in payload


def test_plain_exception_keeps_stack_and_redacts_message() -> None:
    def log_it(logger: logging.Logger) -> None:
        try:
            raise ValueError("bad page for https://api.themoviedb.org/3/x?api_key=k1")
        except ValueError:
            logger.exception("decode failed for https://api.themoviedb.org/3/x?api_key=k1")

    payload = _format(log_it)

    assert payload["exc_type"] == "ValueError"
    assert "k1" not in payload["exc_msg"]
    assert "k1" not in payload["msg"]
    assert "k1" not in payload["stack"]
    assert "Traceback" in payload["stack"]


def test_configure_logging_replaces_its_handlers(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("MOVIEDB_LOG_LEVEL", "debug")
    log_file = tmp_path / "logs" / "moviedb.log"
    logger = logging.getLogger("moviedb")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    try:
        configure_logging(log_file)
        configure_logging(log_file)

        ours = [h for h in logger.handlers if getattr(h, "_moviedb_installed", False)]
        assert len(ours) == 2
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

        logging.getLogger("moviedb.http").warning(
            "http_rate_limited", extra={"extra_fields": {"url": "https://api.themoviedb.org/3/a?api_key=k1"}}
        )
        for handler in ours:
            handler.flush()
        (line,) = log_file.read_text(encoding="utf-8").strip().splitlines()
        payload = json.loads(line)
        assert payload["logger"] == "moviedb.http"
        assert payload["url"] == "https://api.themoviedb.org/3/a?api_key=***"
    finally:
        for handler in logger.handlers:
            if handler not in saved[0]:
                handler.close()
        logger.handlers = saved[0]
        logger.setLevel(saved[1])
        logger.propagate = saved[2]


def test_configure_logging_reads_file_from_environment(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("MOVIEDB_LOG_FILE", str(tmp_path / "env.log"))
    logger = logging.getLogger("moviedb")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    try:
        configure_logging()

        files = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(files) == 1
        assert files[0].baseFilename == str(tmp_path / "env.log")
    finally:
        for handler in logger.handlers:
            if handler not in saved[0]:
                handler.close()
        logger.handlers = saved[0]
        logger.setLevel(saved[1])
        logger.propagate = saved[2]
