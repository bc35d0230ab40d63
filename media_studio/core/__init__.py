"""
Core domain module.

Contains the exception hierarchy shared by every layer.
"""

from media_studio.core.exceptions import (
    ConfigurationError,
    JobRecordNotFoundError,
    JobRecordStoreError,
    ObjectStoreError,
    ProviderError,
    RelayError,
    RequestValidationError,
    StudioException,
)

__all__ = [
    "ConfigurationError",
    "JobRecordNotFoundError",
    "JobRecordStoreError",
    "ObjectStoreError",
    "ProviderError",
    "RelayError",
    "RequestValidationError",
    "StudioException",
]
