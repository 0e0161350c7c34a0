from .context import get_log_context, log_context, reset_context, set_context
from .redact import redact_url
from .setup import configure_logging

__all__ = ["configure_logging", "get_log_context", "set_context", "reset_context", "log_context", "redact_url"]
