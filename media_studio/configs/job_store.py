"""
Job metadata store configuration.

Settings for the DynamoDB table holding short-lived job records.

Dependencies: pydantic_settings
System role: Job metadata store configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class JobStoreSettings(BaseSettings):
    """Settings for the job record table."""

    model_config = SettingsConfigDict(
        env_prefix="TASK_INFO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    table: str = Field(
        default="",
        description="DynamoDB table name keyed by task_id",
    )
    region: str = Field(default="us-east-1", description="AWS region of the table")
    endpoint_url: str | None = Field(
        default=None,
        description="Custom DynamoDB endpoint (e.g. DynamoDB Local)",
    )
    ttl_seconds: int = Field(
        default=86400,
        description="Lifetime stamped on each record as expires_at",
    )
    claim_lease_seconds: int = Field(
        default=300,
        description="Age after which a reconciliation claim may be taken over",
    )
