"""
Generation provider configuration.

Settings for the Runway API: credentials, API version pinning and the
fixed model identifiers used for each job type.

Dependencies: pydantic_settings
System role: Generation provider configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RunwaySettings(BaseSettings):
    """Settings for the Runway generation API."""

    model_config = SettingsConfigDict(
        env_prefix="RUNWAYML_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str = Field(
        default="",
        description="Runway API key (sent as a bearer token)",
    )
    api_base: str = Field(
        default="https://api.dev.runwayml.com/v1",
        description="Runway API base URL",
    )
    api_version: str = Field(
        default="2024-11-06",
        description="Value of the X-Runway-Version header",
    )
    image_model: str = Field(default="gen4_image", description="Text-to-image model")
    video_model: str = Field(default="gen4_turbo", description="Image-to-video model")
    upscale_model: str = Field(default="upscale_v1", description="Video upscale model")
    timeout_seconds: float = Field(
        default=60.0,
        description="Per-request timeout for provider calls",
    )
