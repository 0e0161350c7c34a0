from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone

from .context import get_log_context
from .redact import redact_url


def _api_error_fields(error: BaseException) -> dict[str, object] | None:
    # Duck-typed so this module does not import the http package.
    kind = getattr(error, "kind", None)
    url = getattr(error, "url", None)
    if kind is None or not isinstance(url, str):
        return None
    fields: dict[str, object] = {"kind": getattr(kind, "value", str(kind)), "url": url}
    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        fields["status_code"] = status_code
    cause = getattr(error, "cause", None)
    if cause is not None:
        fields["cause"] = redact_url(f"{cause.__class__.__name__}: {cause}")
    return fields


class JSONFormatter(logging.Formatter):
    """One JSON object per line for records of the ``moviedb`` loggers.

    Request errors attached as ``api_error`` (or raised under ``exc_info``) are
    flattened into ``kind``/``status_code``/``url``/``cause`` fields. Every URL
    that reaches the output, including the message itself, goes through
    :func:`redact_url`.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts_iso_utc": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": redact_url(record.getMessage()),
        }
        payload.update(get_log_context())

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            payload.update(extra_fields)

        api_error = getattr(record, "api_error", None)
        if isinstance(api_error, BaseException):
            payload.update(_api_error_fields(api_error) or {})

        if record.exc_info and record.exc_info[1] is not None:
            exc_value = record.exc_info[1]
            error_fields = _api_error_fields(exc_value)
            if error_fields is not None:
                payload.update(error_fields)
            else:
                payload["exc_type"] = exc_value.__class__.__name__
                payload["exc_msg"] = redact_url(str(exc_value))
                payload["stack"] = redact_url("".join(traceback.format_exception(*record.exc_info)))

        if isinstance(payload.get("url"), str):
            payload["url"] = redact_url(payload["url"])

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)
