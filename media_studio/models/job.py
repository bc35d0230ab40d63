"""
Job domain models and schemas.

Job record held in the metadata store and the provider task snapshot
returned by status checks.

Dependencies: pydantic
System role: Job lifecycle contracts
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AssetKind(str, Enum):
    """Kind of asset a job produces."""

    IMAGE = "image"
    VIDEO = "video"

    @property
    def content_type(self) -> str:
        """MIME type written to the object store for this kind."""
        return "image/png" if self is AssetKind.IMAGE else "video/mp4"

    @property
    def url_field(self) -> str:
        """Status payload field carrying the final public URL."""
        return "imageUrl" if self is AssetKind.IMAGE else "videoUrl"


class TaskStatus(str, Enum):
    """Terminal provider statuses. Anything else is in progress."""

    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class JobRecord(BaseModel):
    """Where a job's output must be written once the provider finishes."""

    model_config = ConfigDict(frozen=True)

    asset_kind: AssetKind = Field(description="Image or video")
    destination_key: str = Field(description="Object store key for the finished asset")
    public_base_url: str = Field(description="Base URL the object store serves from")

    @property
    def public_url(self) -> str:
        """Final public URL of the relayed asset."""
        return f"{self.public_base_url.rstrip('/')}/{self.destination_key}"


class ProviderTask(BaseModel):
    """Snapshot of a provider task as returned by GET /tasks/{id}."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    status: str = ""
    progress: float | None = None
    output: list[str] = Field(default_factory=list)
    failure: str | None = None
    failure_code: str | None = Field(default=None, alias="failureCode")
    asset_id: str | None = Field(default=None, alias="assetId")

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ProviderTask":
        """Build from the provider's JSON, tolerating null output."""
        data = dict(payload)
        if data.get("output") is None:
            data["output"] = []
        return cls.model_validate(data)

    @property
    def succeeded(self) -> bool:
        return self.status == TaskStatus.SUCCEEDED.value

    @property
    def failed(self) -> bool:
        return self.status == TaskStatus.FAILED.value
