"""
Observability module.

Logging configuration, log-safe value helpers and correlation id tracking.
"""

from media_studio.observability.correlation import correlation_scope, get_correlation_id
from media_studio.observability.logger import configure_logging

__all__ = ["configure_logging", "correlation_scope", "get_correlation_id"]
