"""
Logging helpers.

Values passed as log context are flattened into short strings. Provider
output URLs are pre-signed, so their query strings are dropped before they
reach a log line.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import logging
from typing import Any
from urllib.parse import urlsplit, urlunsplit

MAX_VALUE_LENGTH = 300


def redact_url(url: str) -> str:
    """Strip query and fragment (signatures, tokens) from a URL."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def safe_log_value(value: Any, max_length: int = MAX_VALUE_LENGTH) -> str:
    """
    Render a context value for a log record.

    URLs are redacted, containers and byte payloads are summarized by size
    and long strings are cut at max_length.
    """
    if value is None:
        return "None"
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    if isinstance(value, (list, tuple, set)):
        return f"{type(value).__name__}({len(value)} items)"
    if isinstance(value, dict):
        return f"dict({len(value)} keys)"

    text = str(value)
    if text.startswith(("http://", "https://")):
        text = redact_url(text)
    if len(text) > max_length:
        return f"{text[:max_length]}... (truncated, {len(text)} total)"
    return text


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    **context: Any,
) -> None:
    """
    Log a handled exception with its traceback and flattened context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception being reported
        **context: Extra fields (task_id, key, ...)
    """
    extra = {key: safe_log_value(val) for key, val in context.items()}
    extra["error_type"] = type(exc).__name__
    extra["error_msg"] = safe_log_value(getattr(exc, "message", None) or str(exc))
    logger.exception(message, extra=extra)
