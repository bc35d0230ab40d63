"""
Studio client configuration.

Settings used by the polling client that talks to the /ai endpoint.

Dependencies: pydantic_settings
System role: Client-side configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Settings for StudioApiClient and PollController."""

    model_config = SettingsConfigDict(
        env_prefix="STUDIO_CLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(default="http://localhost:8000", description="Server base URL")
    endpoint_path: str = Field(default="/ai", description="Path of the orchestrator endpoint")
    poll_interval_seconds: float = Field(default=4.0, description="Status poll period")
    timeout_seconds: float = Field(default=120.0, description="HTTP timeout per call")
