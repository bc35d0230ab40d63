"""
Job orchestrator.

Turns /ai requests into provider tasks, registers where each task's output
must end up, and on a status check relays finished output into the object
store before answering with its public URL.

Each call runs to completion within one request. All state shared between
requests lives in the job record store and the object store.

Dependencies: media_studio.boundary, media_studio.models, media_studio.core
System role: Job submission and status reconciliation orchestration
"""

import logging
import os
import random
import re
import tempfile
import time
from typing import IO, Any, Callable

from media_studio.boundary.aws.job_record_store import JobRecordStore
from media_studio.boundary.aws.object_store import ObjectStore
from media_studio.boundary.runway.client import RunwayClient
from media_studio.core.exceptions import (
    JobRecordStoreError,
    ObjectStoreError,
    ProviderError,
    RelayError,
    RequestValidationError,
)
from media_studio.models.job import AssetKind, JobRecord, ProviderTask
from media_studio.observability.log_utils import log_exception_with_context, redact_url

logger = logging.getLogger(__name__)

DEFAULT_RATIO = "1280:720"
DEFAULT_DURATION = 5
SEED_RANGE = 2**32
PROMPT_KEY_CHARS = 20
DEFAULT_SOURCE_NAME = "generated-image"
RELAYING_STATUS = "RELAYING"

# Relayed output stays in memory up to this size, then spills to disk
SPOOL_MAX_BYTES = 8 * 1024 * 1024

CleanupScheduler = Callable[..., Any]


def parse_duration(value: Any) -> int:
    """
    Parse a clip duration, defaulting to 5 seconds.

    Raises:
        RequestValidationError: If the value is not a positive integer
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_DURATION
    if isinstance(value, bool):
        raise RequestValidationError("Duration must be an integer.", field="duration")
    try:
        duration = int(str(value).strip()) if not isinstance(value, int) else value
    except ValueError:
        raise RequestValidationError("Duration must be an integer.", field="duration")
    if duration <= 0:
        raise RequestValidationError("Duration must be positive.", field="duration")
    return duration


def prompt_slug(prompt: str) -> str:
    """First characters of a prompt with whitespace replaced by underscores."""
    return re.sub(r"\s", "_", prompt[:PROMPT_KEY_CHARS])


def source_stem(filename: str) -> str:
    """Filename without its last extension; the name itself if nothing is left."""
    stem = filename.rsplit(".", 1)[0] if "." in filename else ""
    return stem or filename


class JobOrchestrator:
    """
    Job orchestrator.

    Submits generation and upscale tasks to the provider and reconciles
    succeeded tasks by relaying their output into the object store.
    """

    def __init__(
        self,
        provider: RunwayClient,
        object_store: ObjectStore,
        job_records: JobRecordStore,
        public_base_url: str,
        clock: Callable[[], float] = time.time,
        seed_source: Callable[[], int] | None = None,
    ) -> None:
        """
        Initialize job orchestrator.

        Args:
            provider: Generation provider client
            object_store: Destination for uploads and relayed output
            job_records: Job metadata store
            public_base_url: Base URL stamped into every job record
            clock: Epoch-seconds source used for destination keys
            seed_source: Provider seed generator (uniform in [0, 2**32))
        """
        self._provider = provider
        self._object_store = object_store
        self._job_records = job_records
        self._public_base_url = public_base_url.rstrip("/")
        self._clock = clock
        self._seed_source = seed_source or (lambda: random.randrange(SEED_RANGE))

    def _timestamp(self) -> int:
        return int(self._clock() * 1000)

    async def _register(self, task_id: str, kind: AssetKind, destination_key: str) -> None:
        await self._job_records.put(
            task_id,
            JobRecord(
                asset_kind=kind,
                destination_key=destination_key,
                public_base_url=self._public_base_url,
            ),
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit_image(self, prompt: str | None, ratio: str | None = None) -> dict:
        """
        Submit a text-to-image job.

        Args:
            prompt: Image prompt (required)
            ratio: Output ratio, defaults to 1280:720

        Returns:
            dict: {"taskId": provider task id}

        Raises:
            RequestValidationError: Prompt missing
            ProviderError: Provider rejected the request
        """
        if not prompt:
            raise RequestValidationError("Image prompt is missing.", field="prompt")

        destination_key = f"generated-images/{self._timestamp()}-{prompt_slug(prompt)}.png"
        data = await self._provider.text_to_image(
            prompt=prompt,
            ratio=ratio or DEFAULT_RATIO,
            seed=self._seed_source(),
        )
        await self._register(data["id"], AssetKind.IMAGE, destination_key)

        logger.info(
            "Image job submitted",
            extra={"task_id": data["id"], "key": destination_key},
        )
        return {"taskId": data["id"]}

    async def submit_video_from_upload(
        self,
        prompt: str | None,
        image: IO[bytes] | None,
        filename: str | None,
        content_type: str | None = None,
        duration: Any = None,
        ratio: str | None = None,
    ) -> dict:
        """
        Store an uploaded source image and submit an image-to-video job.

        The upload is streamed into the object store under uploads/ and its
        public URL is handed to the provider.

        Args:
            prompt: Motion prompt (required)
            image: Uploaded image file object (required)
            filename: Client-side filename of the upload
            content_type: MIME type of the upload
            duration: Clip length in seconds, defaults to 5
            ratio: Output ratio, defaults to 1280:720

        Returns:
            dict: {"taskId": ..., "status": provider's initial status}

        Raises:
            RequestValidationError: Prompt or image missing, bad duration
            ObjectStoreError: Upload could not be stored
            ProviderError: Provider rejected the request
        """
        if not prompt or image is None:
            raise RequestValidationError("Request is missing prompt or image file.")
        duration = parse_duration(duration)
        name = os.path.basename(filename or "") or "upload"

        upload_key = f"uploads/{self._timestamp()}-{name}"
        await self._object_store.upload_stream(
            upload_key, image, content_type or "application/octet-stream"
        )
        image_url = self._object_store.public_url(upload_key)
        logger.info("Source image uploaded", extra={"key": upload_key})

        return await self._start_image_to_video(image_url, prompt, duration, ratio, name)

    async def submit_video_from_url(
        self,
        prompt: str | None,
        image_url: str | None,
        duration: Any = None,
        ratio: str | None = None,
    ) -> dict:
        """
        Submit an image-to-video job for an image that is already hosted.

        Returns:
            dict: {"taskId": ..., "status": provider's initial status}

        Raises:
            RequestValidationError: Prompt or image URL missing, bad duration
            ProviderError: Provider rejected the request
        """
        if not prompt or not image_url:
            raise RequestValidationError("Missing video prompt or image URL.")
        duration = parse_duration(duration)
        return await self._start_image_to_video(
            image_url, prompt, duration, ratio, DEFAULT_SOURCE_NAME
        )

    async def _start_image_to_video(
        self,
        image_url: str,
        prompt: str,
        duration: int,
        ratio: str | None,
        source_name: str,
    ) -> dict:
        destination_key = f"videos/{self._timestamp()}-{source_stem(source_name)}.mp4"
        data = await self._provider.image_to_video(
            prompt=prompt,
            image_url=image_url,
            seed=self._seed_source(),
            duration=duration,
            ratio=ratio or DEFAULT_RATIO,
        )
        await self._register(data["id"], AssetKind.VIDEO, destination_key)

        logger.info(
            "Video job submitted",
            extra={"task_id": data["id"], "key": destination_key, "duration": duration},
        )
        return {"taskId": data["id"], "status": data.get("status")}

    async def submit_upscale(self, asset_id: str | None) -> dict:
        """
        Submit an upscale job for a video produced by an earlier task.

        Args:
            asset_id: Provider asset reference returned with the video

        Returns:
            dict: {"taskId": provider task id}

        Raises:
            RequestValidationError: Asset id missing
            ProviderError: Provider rejected the request
        """
        if not asset_id:
            raise RequestValidationError("Missing assetId to upscale.", field="assetId")

        destination_key = f"videos/upscaled-{asset_id}.mp4"
        data = await self._provider.upscale_video(asset_id)
        await self._register(data["id"], AssetKind.VIDEO, destination_key)

        logger.info(
            "Upscale job submitted",
            extra={"task_id": data["id"], "asset_id": asset_id, "key": destination_key},
        )
        return {"taskId": data["id"]}

    # ------------------------------------------------------------------
    # Status and reconciliation
    # ------------------------------------------------------------------

    async def check_status(
        self,
        task_id: str | None,
        schedule_cleanup: CleanupScheduler | None = None,
    ) -> dict:
        """
        Report task state, relaying output on first observed success.

        Args:
            task_id: Provider task id (required)
            schedule_cleanup: Runs the job record deletion after the response
                (FastAPI BackgroundTasks.add_task); deletion is awaited
                inline when omitted

        Returns:
            dict: {"status", "progress"} plus "imageUrl"/"videoUrl" and
                "assetId" once relayed, or "failure" for failed tasks

        Raises:
            RequestValidationError: Task id missing
            ProviderError: Status check failed or success without output
            JobRecordNotFoundError: Succeeded task has no job record
            RelayError: Output could not be copied into the object store
        """
        if not task_id:
            raise RequestValidationError("Invalid status check request.", field="taskId")

        task = ProviderTask.from_payload(await self._provider.get_task(task_id))
        payload: dict[str, Any] = {"status": task.status, "progress": task.progress}

        if task.succeeded:
            if not task.output:
                raise ProviderError(
                    f"Task {task_id} succeeded without output.", operation="tasks"
                )
            return await self._reconcile(task_id, task, schedule_cleanup)

        if task.failed:
            logger.warning(
                "Provider task failed",
                extra={"task_id": task_id, "reason": task.failure, "code": task.failure_code},
            )
            if task.failure or task.failure_code:
                payload["failure"] = {"reason": task.failure, "code": task.failure_code}

        return payload

    async def _reconcile(
        self,
        task_id: str,
        task: ProviderTask,
        schedule_cleanup: CleanupScheduler | None,
    ) -> dict:
        logger.info("Task succeeded, preparing to relay output", extra={"task_id": task_id})

        record = await self._job_records.claim(task_id)
        if record is None:
            # A concurrent status check is relaying this task
            return {"status": RELAYING_STATUS, "progress": 1.0}

        logger.info(
            "Job record claimed",
            extra={"task_id": task_id, "asset_kind": record.asset_kind.value, "key": record.destination_key},
        )

        try:
            await self._relay_output(task_id, task.output[0], record)
        except RelayError:
            await self._release_quietly(task_id)
            raise

        payload: dict[str, Any] = {
            "status": task.status,
            "progress": task.progress,
            record.asset_kind.url_field: record.public_url,
        }
        if record.asset_kind is AssetKind.VIDEO and task.asset_id:
            payload["assetId"] = task.asset_id

        if schedule_cleanup is not None:
            schedule_cleanup(self._delete_quietly, task_id)
        else:
            await self._delete_quietly(task_id)

        return payload

    async def _relay_output(self, task_id: str, output_url: str, record: JobRecord) -> None:
        """Download provider output and write it at the record's destination."""
        with tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_BYTES) as buffer:
            logger.info(
                "Downloading provider output",
                extra={"task_id": task_id, "url": redact_url(output_url)},
            )
            try:
                async with self._provider.download(output_url) as response:
                    async for chunk in response.aiter_bytes():
                        buffer.write(chunk)
            except ProviderError as e:
                raise RelayError(e.message, task_id=task_id) from e
            buffer.seek(0)

            try:
                await self._object_store.upload_stream(
                    record.destination_key, buffer, record.asset_kind.content_type
                )
            except ObjectStoreError as e:
                raise RelayError(
                    f"Failed to save output of task {task_id}: {e.message}",
                    task_id=task_id,
                ) from e

        logger.info(
            "Output relayed",
            extra={"task_id": task_id, "key": record.destination_key},
        )

    async def _delete_quietly(self, task_id: str) -> None:
        """Best-effort job record cleanup; the response already carries the URL."""
        try:
            await self._job_records.delete(task_id)
        except JobRecordStoreError as e:
            log_exception_with_context(
                logger, "Job record cleanup failed", e, task_id=task_id
            )

    async def _release_quietly(self, task_id: str) -> None:
        try:
            await self._job_records.release(task_id)
        except JobRecordStoreError as e:
            log_exception_with_context(
                logger, "Job record claim release failed", e, task_id=task_id
            )
