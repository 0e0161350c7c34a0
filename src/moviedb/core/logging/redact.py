from __future__ import annotations

import re

_SECRET_PARAM_RE = re.compile(
    r"""(?i)([?&;](?:api_key|session_id|guest_session_id|request_token|[^=&;#\s]*(?:token|secret|password))=)([^&;#\s"']*)"""
)


def redact_url(text: str) -> str:
    """Mask secret query parameter values in a URL, or in any text that embeds one."""
    return _SECRET_PARAM_RE.sub(lambda m: f"{m.group(1)}***", text)
