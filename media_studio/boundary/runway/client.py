"""
Runway API client.

Thin async wrapper over the Runway REST API: submits text-to-image,
image-to-video and upscale tasks, reads task status and streams finished
output. Every non-success answer becomes a ProviderError carrying the
provider's own message when it sent one.

Dependencies: httpx, media_studio.configs, media_studio.core.exceptions
System role: Generation provider adapter
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from media_studio.configs.provider import RunwaySettings
from media_studio.core.exceptions import ProviderError

logger = logging.getLogger(__name__)


class RunwayClient:
    """Async client for the Runway generation API."""

    def __init__(
        self,
        settings: RunwaySettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize Runway client.

        Args:
            settings: Provider settings (key, base URL, models)
            http_client: Optional preconfigured client (tests inject a
                MockTransport-backed one)
        """
        self._settings = settings
        self._http = http_client or httpx.AsyncClient(
            timeout=settings.timeout_seconds,
            follow_redirects=True,
        )

    @property
    def settings(self) -> RunwaySettings:
        return self._settings

    def _headers(self, with_body: bool = True) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._settings.api_key}",
            "X-Runway-Version": self._settings.api_version,
        }
        if with_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _url(self, path: str) -> str:
        return f"{self._settings.api_base.rstrip('/')}/{path.lstrip('/')}"

    async def _post(self, path: str, payload: dict[str, Any], label: str) -> dict[str, Any]:
        try:
            response = await self._http.post(
                self._url(path), json=payload, headers=self._headers()
            )
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Runway {label} API request failed: {e}", operation=path
            ) from e

        data = _json_or_empty(response)
        if not response.is_success:
            logger.error(
                f"{__name__}:_post - Runway {label} API error",
                extra={"status_code": response.status_code, "path": path},
            )
            raise ProviderError(
                _error_text(data) or f"Runway {label} API error: {response.status_code}",
                status_code=response.status_code,
                operation=path,
            )
        if not data.get("id"):
            raise ProviderError(
                f"Runway {label} API returned no task id",
                status_code=response.status_code,
                operation=path,
            )
        return data

    async def text_to_image(self, prompt: str, ratio: str, seed: int) -> dict[str, Any]:
        """
        Submit a text-to-image task.

        Args:
            prompt: Image prompt
            ratio: Output ratio, e.g. "1280:720"
            seed: Provider seed in [0, 2**32)

        Returns:
            dict: Provider task payload (contains at least "id")

        Raises:
            ProviderError: Non-success result or transport failure
        """
        return await self._post(
            "text_to_image",
            {
                "model": self._settings.image_model,
                "promptText": prompt,
                "ratio": ratio,
                "seed": seed,
            },
            "T2I",
        )

    async def image_to_video(
        self,
        prompt: str,
        image_url: str,
        seed: int,
        duration: int,
        ratio: str,
    ) -> dict[str, Any]:
        """
        Submit an image-to-video task.

        Args:
            prompt: Motion prompt
            image_url: Publicly reachable source image
            seed: Provider seed in [0, 2**32)
            duration: Clip length in seconds
            ratio: Output ratio

        Returns:
            dict: Provider task payload

        Raises:
            ProviderError: Non-success result or transport failure
        """
        return await self._post(
            "image_to_video",
            {
                "model": self._settings.video_model,
                "promptText": prompt,
                "promptImage": image_url,
                "seed": seed,
                "watermark": False,
                "duration": duration,
                "ratio": ratio,
            },
            "I2V",
        )

    async def upscale_video(self, asset_id: str) -> dict[str, Any]:
        """Submit an upscale task for a provider-side video asset."""
        return await self._post(
            "video_upscale",
            {"model": self._settings.upscale_model, "assetId": asset_id},
            "Upscale",
        )

    async def get_task(self, task_id: str) -> dict[str, Any]:
        """
        Fetch current task state.

        Args:
            task_id: Provider task id

        Returns:
            dict: Raw task payload (status, progress, output, ...)

        Raises:
            ProviderError: Non-success result or transport failure
        """
        try:
            response = await self._http.get(
                self._url(f"tasks/{task_id}"), headers=self._headers(with_body=False)
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"Status check failed: {e}", operation="tasks") from e

        data = _json_or_empty(response)
        if not response.is_success:
            reason = _error_text(data) or response.reason_phrase or str(response.status_code)
            raise ProviderError(
                f"Status check failed: {reason}",
                status_code=response.status_code,
                operation="tasks",
            )
        return data

    @asynccontextmanager
    async def download(self, url: str) -> AsyncIterator[httpx.Response]:
        """
        Stream a finished output file.

        Output URLs are pre-signed, so no provider headers are sent.

        Yields:
            httpx.Response: Open streaming response with a success status

        Raises:
            ProviderError: Non-success status or transport failure
        """
        try:
            async with self._http.stream("GET", url) as response:
                if not response.is_success:
                    raise ProviderError(
                        f"Failed to download from Runway. Status: {response.status_code}",
                        status_code=response.status_code,
                        operation="download",
                    )
                yield response
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Failed to download from Runway: {e}", operation="download"
            ) from e

    async def aclose(self) -> None:
        await self._http.aclose()


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_text(data: dict[str, Any]) -> str | None:
    error = data.get("error")
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        return error.get("message") or str(error)
    return None
