"""
Studio session.

Holds the state a front end renders for the image → video → upscale flow
and wires each submission to its category poller. A generated image and a
selected upload are mutually exclusive video sources.

Dependencies: media_studio.client.api_client, media_studio.client.poll_controller
System role: Client-side workflow state
"""

import logging
import mimetypes
from pathlib import Path

from media_studio.client.api_client import StudioApiClient, StudioClientError
from media_studio.client.poll_controller import (
    PollController,
    PollState,
    TaskCategory,
    TaskView,
)
from media_studio.configs.client import ClientSettings

logger = logging.getLogger(__name__)

ACCEPTED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
MAX_SOURCE_FILE_BYTES = 10 * 1024 * 1024
DEFAULT_DURATION = 5
DEFAULT_RATIO = "1280:720"


class SourceFileError(ValueError):
    """Raised when a selected source image is rejected."""


class StudioSession:
    """
    Front-end state for one user session.

    Chaining rules:
    - a succeeded image becomes the video source unless a file is selected
    - a succeeded video unlocks upscale once its asset id is known
    """

    def __init__(
        self,
        api_client: StudioApiClient | None = None,
        settings: ClientSettings | None = None,
        controller: PollController | None = None,
    ) -> None:
        settings = settings or ClientSettings()
        self._owns_client = api_client is None
        self._api = api_client or StudioApiClient(settings)
        self.controller = controller or PollController(
            self._api, interval_seconds=settings.poll_interval_seconds
        )
        self.controller.add_listener(self._on_update)
        self._active_tasks: dict[TaskCategory, str] = {}

        self.duration = DEFAULT_DURATION
        self.ratio = DEFAULT_RATIO

        self.image_status = ""
        self.generated_image_url: str | None = None
        self.is_generating_image = False

        self.selected_file: Path | None = None
        self.selected_content_type: str | None = None
        self.preview_url: str | None = None

        self.video_status = ""
        self.progress = 0
        self.video_url: str | None = None
        self.hd_video_asset_id: str | None = None
        self.is_generating = False

        self.upscale_status = ""
        self.upscaled_video_url: str | None = None
        self.is_upscaling = False

        self.error = ""

    @property
    def has_image_source(self) -> bool:
        return self.selected_file is not None or self.generated_image_url is not None

    @property
    def can_upscale(self) -> bool:
        return self.hd_video_asset_id is not None and not self.is_upscaling

    # ------------------------------------------------------------------
    # Source image
    # ------------------------------------------------------------------

    def select_source_file(self, path: str | Path, content_type: str | None = None) -> None:
        """
        Use a local image as the video source.

        Clears any generated image, even when the file is then rejected.

        Raises:
            SourceFileError: Not JPEG/PNG/WebP, or larger than 10 MiB
        """
        path = Path(path)
        self.generated_image_url = None
        self.image_status = ""

        content_type = content_type or mimetypes.guess_type(path.name)[0]
        if content_type not in ACCEPTED_IMAGE_TYPES:
            self.error = "Please select a valid image format (JPEG, PNG, WebP)"
            raise SourceFileError(self.error)
        if path.stat().st_size > MAX_SOURCE_FILE_BYTES:
            self.error = "The file is too large. Maximum 10MB allowed."
            raise SourceFileError(self.error)

        self.selected_file = path
        self.selected_content_type = content_type
        self.preview_url = path.resolve().as_uri()
        self.error = ""

    def remove_file(self) -> None:
        self.selected_file = None
        self.selected_content_type = None
        self.preview_url = None

    def reset(self, full: bool = False) -> None:
        """
        Clear video and upscale state; a full reset also drops the source image.

        Polling for every cleared category stops, so a late result from an
        earlier task cannot land on the new state.
        """
        cleared = [TaskCategory.VIDEO, TaskCategory.UPSCALE]
        if full:
            cleared.append(TaskCategory.IMAGE)
        for category in cleared:
            self._active_tasks.pop(category, None)
            self.controller.reset(category)

        self.video_url = None
        self.upscaled_video_url = None
        self.hd_video_asset_id = None
        self.is_generating = False
        self.is_upscaling = False
        self.progress = 0
        self.video_status = ""
        self.upscale_status = ""
        self.error = ""
        if full:
            self.image_status = ""
            self.generated_image_url = None
            self.remove_file()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def generate_image(self, prompt: str) -> None:
        """Start an image job; a success makes it the video source."""
        if not prompt or not prompt.strip():
            self.error = "Please enter a prompt for the image."
            return

        self.reset(full=True)
        self.is_generating_image = True
        self.image_status = "Starting image generation..."
        try:
            data = await self._api.generate_image(prompt, self.ratio)
        except StudioClientError as e:
            self.error = e.message
            self.is_generating_image = False
            return

        self.image_status = "Image generation started, processing..."
        self._track(data["taskId"], TaskCategory.IMAGE)

    async def generate_video(self, prompt: str) -> None:
        """Start a video job from the selected file, else the generated image."""
        if not self.has_image_source or not prompt or not prompt.strip():
            self.error = "Please provide a source image and a video prompt."
            return

        self.reset()
        self.is_generating = True
        self.video_status = "Starting video generation job..."
        try:
            if self.selected_file is not None:
                data = await self._api.start_video_from_upload(
                    prompt,
                    self.selected_file,
                    self.selected_content_type,
                    duration=self.duration,
                    ratio=self.ratio,
                )
            else:
                data = await self._api.start_video_from_url(
                    prompt,
                    self.generated_image_url,
                    duration=self.duration,
                    ratio=self.ratio,
                )
        except StudioClientError as e:
            self.error = e.message
            self.is_generating = False
            return

        self.video_status = "Video generation started, processing..."
        self._track(data["taskId"], TaskCategory.VIDEO)

    async def upscale(self) -> None:
        """Upscale the last generated video."""
        if not self.hd_video_asset_id:
            self.error = "No video asset ID available to upscale."
            return

        self.is_upscaling = True
        self.upscale_status = "Starting upscale job..."
        self.error = ""
        try:
            data = await self._api.upscale_video(self.hd_video_asset_id)
        except StudioClientError as e:
            self.error = e.message
            self.is_upscaling = False
            return

        self.upscale_status = "Upscaling in progress..."
        self._track(data["taskId"], TaskCategory.UPSCALE)

    def _track(self, task_id: str, category: TaskCategory) -> None:
        self._active_tasks[category] = task_id
        self.controller.start(task_id, category)

    async def close(self) -> None:
        await self.controller.close()
        if self._owns_client:
            await self._api.aclose()

    # ------------------------------------------------------------------
    # Poll updates
    # ------------------------------------------------------------------

    def _set_busy(self, category: TaskCategory, busy: bool) -> None:
        if category is TaskCategory.IMAGE:
            self.is_generating_image = busy
        elif category is TaskCategory.VIDEO:
            self.is_generating = busy
        else:
            self.is_upscaling = busy

    def _on_update(self, view: TaskView) -> None:
        if view.task_id is None or view.task_id != self._active_tasks.get(view.category):
            return
        if view.state is PollState.FAILED:
            self.error = view.error or ""
            self._set_busy(view.category, False)
            return
        if not view.status_text:
            return

        succeeded = view.state is PollState.SUCCEEDED
        if view.category is TaskCategory.IMAGE:
            self.image_status = view.status_text
            if succeeded:
                self.preview_url = view.result_url
                self.generated_image_url = view.result_url
                self.is_generating_image = False
        elif view.category is TaskCategory.VIDEO:
            self.video_status = view.status_text
            if succeeded:
                self.video_url = view.result_url
                self.hd_video_asset_id = view.asset_id
                self.is_generating = False
            else:
                self.progress = view.progress
        else:
            self.upscale_status = view.status_text
            if succeeded:
                self.upscaled_video_url = view.result_url
                self.is_upscaling = False
