"""
HTTP client for the /ai endpoint.

One coroutine per action. Any non-2xx answer or a body with
success=false raises StudioClientError carrying the server's message.

Dependencies: httpx, media_studio.configs
System role: Client-side transport to the job orchestrator
"""

import logging
from pathlib import Path
from typing import Any

import httpx

from media_studio.configs.client import ClientSettings

logger = logging.getLogger(__name__)


class StudioClientError(Exception):
    """Raised when an orchestrator call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class StudioApiClient:
    """Async client for the orchestrator endpoint."""

    def __init__(
        self,
        settings: ClientSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize API client.

        Args:
            settings: Client settings (base URL, endpoint path, timeout)
            http_client: Optional preconfigured client (tests pass one
                backed by httpx.MockTransport or an ASGI app)
        """
        self._settings = settings or ClientSettings()
        self._http = http_client or httpx.AsyncClient(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout_seconds,
        )

    async def _send(self, label: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._http.post(self._settings.endpoint_path, **kwargs)
        except httpx.HTTPError as e:
            raise StudioClientError(f"Failed to {label}: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.is_success or not data.get("success"):
            raise StudioClientError(
                data.get("error") or f"Failed to {label} (HTTP {response.status_code})",
                status_code=response.status_code,
            )
        return data

    async def generate_image(self, prompt: str, ratio: str | None = None) -> dict[str, Any]:
        """Start a text-to-image job. Returns {"success", "taskId"}."""
        body = {"action": "generateImage", "prompt": prompt}
        if ratio:
            body["ratio"] = ratio
        return await self._send("start image generation", json=body)

    async def start_video_from_upload(
        self,
        prompt: str,
        image_path: str | Path,
        content_type: str,
        duration: int = 5,
        ratio: str = "1280:720",
    ) -> dict[str, Any]:
        """
        Upload a local image and start an image-to-video job.

        Returns:
            dict: {"success", "taskId", "status"}
        """
        path = Path(image_path)
        with path.open("rb") as fh:
            return await self._send(
                "start video generation",
                data={"prompt": prompt, "duration": str(duration), "ratio": ratio},
                files={"image": (path.name, fh, content_type)},
            )

    async def start_video_from_url(
        self,
        prompt: str,
        image_url: str,
        duration: int = 5,
        ratio: str = "1280:720",
    ) -> dict[str, Any]:
        """Start an image-to-video job from an already hosted image."""
        return await self._send(
            "start video generation",
            json={
                "action": "startVideoFromUrl",
                "videoPrompt": prompt,
                "imageUrl": image_url,
                "duration": duration,
                "ratio": ratio,
            },
        )

    async def upscale_video(self, asset_id: str) -> dict[str, Any]:
        """Start an upscale job for a generated video asset."""
        return await self._send(
            "start upscale job", json={"action": "upscaleVideo", "assetId": asset_id}
        )

    async def check_status(self, task_id: str, category: str = "task") -> dict[str, Any]:
        """Fetch (and on success, reconcile) the state of a task."""
        return await self._send(
            f"check {category} status", json={"action": "status", "taskId": task_id}
        )

    async def aclose(self) -> None:
        await self._http.aclose()
