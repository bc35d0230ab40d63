"""
Request schemas for the /ai endpoint.

One model per JSON action. Fields are optional at the schema level so
missing values reach the orchestrator and fail with a descriptive message
instead of a generic schema error.

Dependencies: pydantic
System role: /ai request contracts
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Action(str, Enum):
    """Discriminator values accepted in the JSON body."""

    GENERATE_IMAGE = "generateImage"
    START_VIDEO_FROM_URL = "startVideoFromUrl"
    UPSCALE_VIDEO = "upscaleVideo"
    STATUS = "status"


class _ActionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GenerateImageRequest(_ActionRequest):
    """Text-to-image submission."""

    prompt: str | None = None
    ratio: str | None = None


class StartVideoFromUrlRequest(_ActionRequest):
    """Image-to-video submission from an image already hosted somewhere."""

    video_prompt: str | None = Field(default=None, alias="videoPrompt")
    image_url: str | None = Field(default=None, alias="imageUrl")
    duration: int | str | None = None
    ratio: str | None = None


class UpscaleVideoRequest(_ActionRequest):
    """Upscale submission for a previously generated video asset."""

    asset_id: str | None = Field(default=None, alias="assetId")


class StatusRequest(_ActionRequest):
    """Status check for a provider task."""

    task_id: str | None = Field(default=None, alias="taskId")
