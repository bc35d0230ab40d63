"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: media_studio.configs, media_studio.application, media_studio.boundary
System role: DI container for service injection
"""

from functools import lru_cache

from fastapi import Depends

from media_studio.application.services.job_orchestrator import JobOrchestrator
from media_studio.configs import Settings, get_settings
from media_studio.core.exceptions import ConfigurationError


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self):
        self._runway_client = None
        self._object_store = None
        self._job_record_store = None
        self._job_orchestrator = None

    @property
    def runway_client(self):
        """Get cached Runway client."""
        if self._runway_client is None:
            from media_studio.boundary.runway.client import RunwayClient

            self._runway_client = RunwayClient(get_settings().runway)
        return self._runway_client

    @property
    def object_store(self):
        """Get cached object store."""
        if self._object_store is None:
            from media_studio.boundary.aws.object_store import ObjectStore

            self._object_store = ObjectStore.from_settings(get_settings().object_store)
        return self._object_store

    @property
    def job_record_store(self):
        """Get cached job record store."""
        if self._job_record_store is None:
            from media_studio.boundary.aws.job_record_store import JobRecordStore

            self._job_record_store = JobRecordStore.from_settings(get_settings().job_store)
        return self._job_record_store

    @property
    def job_orchestrator(self) -> JobOrchestrator:
        """Get cached job orchestrator."""
        if self._job_orchestrator is None:
            self._job_orchestrator = JobOrchestrator(
                provider=self.runway_client,
                object_store=self.object_store,
                job_records=self.job_record_store,
                public_base_url=get_settings().object_store.public_url,
            )
        return self._job_orchestrator

    async def aclose(self) -> None:
        """Close open clients and clear all cached instances."""
        if self._runway_client is not None:
            await self._runway_client.aclose()
        self._runway_client = None
        self._object_store = None
        self._job_record_store = None
        self._job_orchestrator = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def require_runtime_config(settings: Settings = Depends(get_settings_dependency)) -> Settings:
    """
    Fail closed when a required runtime setting is missing.

    Raises:
        ConfigurationError: Provider key, public URL, bucket or table unset
    """
    missing = settings.missing_runtime_config()
    if missing:
        raise ConfigurationError(missing)
    return settings


def get_job_orchestrator(settings: Settings = Depends(require_runtime_config)) -> JobOrchestrator:
    """
    Get job orchestrator instance.

    Built lazily on first use, only after required settings are confirmed.

    Args:
        settings: Validated settings (injected via Depends)

    Returns:
        JobOrchestrator: Orchestrator wired to the provider and both stores
    """
    return get_service_cache().job_orchestrator
