"""
Object store configuration.

Settings for the S3-compatible bucket (Cloudflare R2, MinIO or S3) that
receives uploads and relayed generation output.

Dependencies: pydantic_settings
System role: Object store configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ObjectStoreSettings(BaseSettings):
    """Settings for object store operations."""

    model_config = SettingsConfigDict(
        env_prefix="R2_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    bucket: str = Field(
        default="",
        description="Bucket for uploaded images and generated media",
    )
    public_url: str = Field(
        default="",
        description="Base URL under which the bucket is served publicly",
    )
    endpoint_url: str | None = Field(
        default=None,
        description="Custom S3 endpoint (R2 account endpoint, MinIO, ...)",
    )
    region: str = Field(
        default="auto",
        description="Bucket region (R2 uses 'auto')",
    )
    access_key_id: str | None = Field(default=None, description="Access key id")
    secret_access_key: str | None = Field(default=None, description="Secret access key")
