"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from media_studio.configs.base import BaseSettings
from media_studio.configs.client import ClientSettings
from media_studio.configs.job_store import JobStoreSettings
from media_studio.configs.object_store import ObjectStoreSettings
from media_studio.configs.provider import RunwaySettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    runway: RunwaySettings = Field(default_factory=RunwaySettings)
    object_store: ObjectStoreSettings = Field(default_factory=ObjectStoreSettings)
    job_store: JobStoreSettings = Field(default_factory=JobStoreSettings)
    client: ClientSettings = Field(default_factory=ClientSettings)

    def missing_runtime_config(self) -> list[str]:
        """
        List required runtime settings that are not set.

        The /ai endpoint refuses to work without a provider key, a public
        base URL, a bucket and a job record table.

        Returns:
            list[str]: Environment variable names that are empty
        """
        required = {
            "RUNWAYML_API_KEY": self.runway.api_key,
            "R2_PUBLIC_URL": self.object_store.public_url,
            "R2_BUCKET": self.object_store.bucket,
            "TASK_INFO_TABLE": self.job_store.table,
        }
        return [name for name, value in required.items() if not (value or "").strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from media_studio.configs import get_settings
        settings = get_settings()
    """
    return Settings()
