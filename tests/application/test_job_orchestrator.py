"""
Test suite for JobOrchestrator.

Covers job submission (destination keys, job records, provider payloads),
validation without side effects, and status reconciliation including the
claim that keeps two status checks from relaying the same output.

System role: Verification of job submission and reconciliation
"""

import io

import httpx
import pytest

from conftest import FIXED_MS, FIXED_SEED, PUBLIC_BASE_URL

from media_studio.application.services.job_orchestrator import (
    RELAYING_STATUS,
    parse_duration,
    prompt_slug,
    source_stem,
)
from media_studio.core.exceptions import (
    JobRecordNotFoundError,
    ProviderError,
    RelayError,
    RequestValidationError,
)
from media_studio.models.job import AssetKind, JobRecord

OUTPUT_URL = "https://cdn.runway.test/out.png?sig=abc"


class TestHelpers:
    """Test suite for key and duration helpers."""

    def test_prompt_slug_should_take_twenty_chars_and_replace_whitespace(self) -> None:
        assert prompt_slug("a red fox") == "a_red_fox"
        assert prompt_slug("a very long prompt\twith tabs and more") == "a_very_long_prompt_w"

    def test_source_stem_should_strip_last_extension_only(self) -> None:
        assert source_stem("cat.photo.jpg") == "cat.photo"
        assert source_stem("generated-image") == "generated-image"
        assert source_stem(".png") == ".png"

    @pytest.mark.parametrize("value,expected", [(None, 5), ("", 5), ("10", 10), (10, 10)])
    def test_parse_duration_should_default_and_coerce(self, value, expected) -> None:
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["ten", "1.5", 0, -3, True])
    def test_parse_duration_should_reject_bad_values(self, value) -> None:
        with pytest.raises(RequestValidationError):
            parse_duration(value)


class TestSubmitImage:
    """Test suite for text-to-image submission."""

    @pytest.mark.asyncio
    async def test_submit_image_should_register_image_record(
        self, orchestrator, fake_runway, job_records
    ) -> None:
        """Test a valid prompt creates exactly one image job record."""
        # Arrange
        fake_runway.task_ids.append("t1")

        # Act
        result = await orchestrator.submit_image("a red fox", "1280:720")

        # Assert
        assert result == {"taskId": "t1"}
        assert list(job_records.records) == ["t1"]
        record = job_records.records["t1"]
        assert record.asset_kind is AssetKind.IMAGE
        assert record.destination_key == f"generated-images/{FIXED_MS}-a_red_fox.png"
        assert record.public_base_url == PUBLIC_BASE_URL

    @pytest.mark.asyncio
    async def test_submit_image_should_send_model_prompt_ratio_and_seed(
        self, orchestrator, fake_runway
    ) -> None:
        await orchestrator.submit_image("a red fox")

        path, body = fake_runway.submissions[0]
        assert path == "text_to_image"
        assert body == {
            "model": "gen4_image",
            "promptText": "a red fox",
            "ratio": "1280:720",
            "seed": FIXED_SEED,
        }
        request = fake_runway.requests[0]
        assert request.headers["Authorization"] == "Bearer test-key"
        assert request.headers["X-Runway-Version"] == "2024-11-06"

    @pytest.mark.asyncio
    async def test_submit_image_without_prompt_should_fail_without_side_effects(
        self, orchestrator, fake_runway, job_records
    ) -> None:
        with pytest.raises(RequestValidationError, match="Image prompt is missing."):
            await orchestrator.submit_image("")

        assert fake_runway.provider_calls == 0
        assert job_records.records == {}

    @pytest.mark.asyncio
    async def test_submit_image_provider_error_should_not_create_record(
        self, orchestrator, fake_runway, job_records
    ) -> None:
        fake_runway.submit_response = httpx.Response(400, json={"error": "Prompt rejected"})

        with pytest.raises(ProviderError, match="Prompt rejected"):
            await orchestrator.submit_image("a red fox")

        assert job_records.records == {}


class TestSubmitVideo:
    """Test suite for image-to-video submission."""

    @pytest.mark.asyncio
    async def test_upload_should_store_image_then_submit_with_public_url(
        self, orchestrator, fake_runway, object_store, job_records
    ) -> None:
        # Arrange
        fake_runway.task_ids.append("v1")
        image = io.BytesIO(b"\x89PNG fake")

        # Act
        result = await orchestrator.submit_video_from_upload(
            prompt="camera zooms in",
            image=image,
            filename="cat.photo.png",
            content_type="image/png",
            duration="10",
            ratio="720:1280",
        )

        # Assert
        assert result == {"taskId": "v1", "status": "PENDING"}
        upload_key = f"uploads/{FIXED_MS}-cat.photo.png"
        stored = object_store.get(upload_key)
        assert stored.body == b"\x89PNG fake"
        assert stored.content_type == "image/png"

        path, body = fake_runway.submissions[0]
        assert path == "image_to_video"
        assert body["promptImage"] == f"{PUBLIC_BASE_URL}/{upload_key}"
        assert body["duration"] == 10
        assert body["ratio"] == "720:1280"
        assert body["watermark"] is False
        assert body["model"] == "gen4_turbo"

        record = job_records.records["v1"]
        assert record.asset_kind is AssetKind.VIDEO
        assert record.destination_key == f"videos/{FIXED_MS}-cat.photo.mp4"

    @pytest.mark.asyncio
    async def test_upload_filename_path_should_be_reduced_to_basename(
        self, orchestrator, object_store
    ) -> None:
        await orchestrator.submit_video_from_upload(
            "pan left", io.BytesIO(b"x"), "../../etc/cat.jpg", "image/jpeg"
        )

        assert object_store.writes[0].key == f"uploads/{FIXED_MS}-cat.jpg"

    @pytest.mark.asyncio
    async def test_upload_without_image_should_fail_before_any_write(
        self, orchestrator, fake_runway, object_store
    ) -> None:
        with pytest.raises(RequestValidationError, match="missing prompt or image file"):
            await orchestrator.submit_video_from_upload("pan left", None, None)

        assert object_store.writes == []
        assert fake_runway.provider_calls == 0

    @pytest.mark.asyncio
    async def test_upload_with_bad_duration_should_fail_before_any_write(
        self, orchestrator, object_store
    ) -> None:
        with pytest.raises(RequestValidationError, match="Duration must be an integer."):
            await orchestrator.submit_video_from_upload(
                "pan left", io.BytesIO(b"x"), "cat.jpg", duration="long"
            )

        assert object_store.writes == []

    @pytest.mark.asyncio
    async def test_from_url_should_use_generated_image_name(
        self, orchestrator, fake_runway, job_records, object_store
    ) -> None:
        fake_runway.task_ids.append("v2")

        result = await orchestrator.submit_video_from_url(
            "slow dolly", f"{PUBLIC_BASE_URL}/generated-images/1-fox.png"
        )

        assert result["taskId"] == "v2"
        _, body = fake_runway.submissions[0]
        assert body["promptImage"] == f"{PUBLIC_BASE_URL}/generated-images/1-fox.png"
        assert body["duration"] == 5
        assert body["ratio"] == "1280:720"
        assert job_records.records["v2"].destination_key == f"videos/{FIXED_MS}-generated-image.mp4"
        assert object_store.writes == []

    @pytest.mark.asyncio
    async def test_from_url_without_image_url_should_fail(self, orchestrator, fake_runway) -> None:
        with pytest.raises(RequestValidationError, match="Missing video prompt or image URL."):
            await orchestrator.submit_video_from_url("slow dolly", None)

        assert fake_runway.provider_calls == 0


class TestSubmitUpscale:
    """Test suite for upscale submission."""

    @pytest.mark.asyncio
    async def test_upscale_should_register_keyed_by_asset(
        self, orchestrator, fake_runway, job_records
    ) -> None:
        fake_runway.task_ids.append("u1")

        result = await orchestrator.submit_upscale("asset123")

        assert result == {"taskId": "u1"}
        assert fake_runway.submissions[0] == (
            "video_upscale",
            {"model": "upscale_v1", "assetId": "asset123"},
        )
        record = job_records.records["u1"]
        assert record.asset_kind is AssetKind.VIDEO
        assert record.destination_key == "videos/upscaled-asset123.mp4"

    @pytest.mark.asyncio
    async def test_upscale_without_asset_should_fail(self, orchestrator, fake_runway) -> None:
        with pytest.raises(RequestValidationError, match="Missing assetId to upscale."):
            await orchestrator.submit_upscale(None)

        assert fake_runway.provider_calls == 0


class TestCheckStatus:
    """Test suite for status checks and reconciliation."""

    @pytest.fixture
    def image_record(self, job_records) -> JobRecord:
        record = JobRecord(
            asset_kind=AssetKind.IMAGE,
            destination_key=f"generated-images/{FIXED_MS}-a_red_fox.png",
            public_base_url=PUBLIC_BASE_URL,
        )
        job_records.records["t1"] = record
        return record

    @pytest.mark.asyncio
    async def test_running_task_should_not_touch_either_store(
        self, orchestrator, fake_runway, job_records, object_store, image_record
    ) -> None:
        """Test repeated checks of a non-terminal task are side-effect free."""
        fake_runway.queue_status("t1", {"status": "RUNNING", "progress": 0.4})

        for _ in range(3):
            result = await orchestrator.check_status("t1")
            assert result == {"status": "RUNNING", "progress": 0.4}

        assert job_records.mutation_count == 0
        assert job_records.records["t1"] == image_record
        assert object_store.writes == []

    @pytest.mark.asyncio
    async def test_succeeded_image_should_relay_once_and_return_public_url(
        self, orchestrator, fake_runway, job_records, object_store, image_record
    ) -> None:
        # Arrange
        fake_runway.queue_status(
            "t1", {"status": "SUCCEEDED", "progress": 1, "output": [OUTPUT_URL]}
        )
        fake_runway.outputs[OUTPUT_URL] = b"png-bytes"

        # Act
        result = await orchestrator.check_status("t1")

        # Assert
        assert result == {
            "status": "SUCCEEDED",
            "progress": 1,
            "imageUrl": f"{PUBLIC_BASE_URL}/{image_record.destination_key}",
        }
        assert len(object_store.writes) == 1
        stored = object_store.writes[0]
        assert stored.key == image_record.destination_key
        assert stored.body == b"png-bytes"
        assert stored.content_type == "image/png"
        assert job_records.deleted == ["t1"]

    @pytest.mark.asyncio
    async def test_succeeded_video_should_return_video_url_and_asset_id(
        self, orchestrator, fake_runway, job_records, object_store
    ) -> None:
        job_records.records["v1"] = JobRecord(
            asset_kind=AssetKind.VIDEO,
            destination_key="videos/1-cat.mp4",
            public_base_url=PUBLIC_BASE_URL,
        )
        fake_runway.queue_status(
            "v1",
            {"status": "SUCCEEDED", "progress": 1, "output": [OUTPUT_URL], "assetId": "asset123"},
        )
        fake_runway.outputs[OUTPUT_URL] = b"mp4-bytes"

        result = await orchestrator.check_status("v1")

        assert result["videoUrl"] == f"{PUBLIC_BASE_URL}/videos/1-cat.mp4"
        assert result["assetId"] == "asset123"
        assert object_store.writes[0].content_type == "video/mp4"

    @pytest.mark.asyncio
    async def test_cleanup_should_be_handed_to_scheduler_when_given(
        self, orchestrator, fake_runway, job_records, image_record
    ) -> None:
        fake_runway.queue_status("t1", {"status": "SUCCEEDED", "output": [OUTPUT_URL]})
        fake_runway.outputs[OUTPUT_URL] = b"png"
        scheduled = []

        await orchestrator.check_status("t1", schedule_cleanup=lambda fn, *a: scheduled.append((fn, a)))

        assert job_records.deleted == []
        assert len(scheduled) == 1
        fn, args = scheduled[0]
        await fn(*args)
        assert job_records.deleted == ["t1"]

    @pytest.mark.asyncio
    async def test_missing_record_should_be_fatal(
        self, orchestrator, fake_runway, object_store
    ) -> None:
        fake_runway.queue_status("ghost", {"status": "SUCCEEDED", "output": [OUTPUT_URL]})
        fake_runway.outputs[OUTPUT_URL] = b"png"

        with pytest.raises(JobRecordNotFoundError, match="Could not find destination for task ghost."):
            await orchestrator.check_status("ghost")

        assert object_store.writes == []

    @pytest.mark.asyncio
    async def test_second_check_during_relay_should_report_relaying(
        self, orchestrator, fake_runway, job_records, object_store, image_record
    ) -> None:
        """Test a claimed record makes a concurrent check a no-op."""
        job_records.claimed.add("t1")
        fake_runway.queue_status("t1", {"status": "SUCCEEDED", "output": [OUTPUT_URL]})

        result = await orchestrator.check_status("t1")

        assert result == {"status": RELAYING_STATUS, "progress": 1.0}
        assert object_store.writes == []
        assert job_records.deleted == []

    @pytest.mark.asyncio
    async def test_success_without_output_should_raise(
        self, orchestrator, fake_runway, image_record
    ) -> None:
        fake_runway.queue_status("t1", {"status": "SUCCEEDED", "output": None})

        with pytest.raises(ProviderError, match="succeeded without output"):
            await orchestrator.check_status("t1")

    @pytest.mark.asyncio
    async def test_download_failure_should_release_claim_and_keep_record(
        self, orchestrator, fake_runway, job_records, object_store, image_record
    ) -> None:
        fake_runway.queue_status("t1", {"status": "SUCCEEDED", "output": [OUTPUT_URL]})

        with pytest.raises(RelayError, match="Failed to download from Runway. Status: 404"):
            await orchestrator.check_status("t1")

        assert object_store.writes == []
        assert "t1" in job_records.records
        assert job_records.released == ["t1"]
        assert "t1" not in job_records.claimed

    @pytest.mark.asyncio
    async def test_store_failure_should_raise_relay_error_and_allow_retry(
        self, orchestrator, fake_runway, job_records, object_store, image_record
    ) -> None:
        fake_runway.queue_status("t1", {"status": "SUCCEEDED", "output": [OUTPUT_URL]})
        fake_runway.outputs[OUTPUT_URL] = b"png"
        object_store.fail_with = "bucket unavailable"

        with pytest.raises(RelayError, match="bucket unavailable"):
            await orchestrator.check_status("t1")

        object_store.fail_with = None
        result = await orchestrator.check_status("t1")
        assert result["imageUrl"].endswith(image_record.destination_key)

    @pytest.mark.asyncio
    async def test_failed_task_should_carry_failure_reason(
        self, orchestrator, fake_runway, object_store, image_record
    ) -> None:
        fake_runway.queue_status(
            "t1",
            {"status": "FAILED", "progress": 0.2, "failure": "Content moderated", "failureCode": "SAFETY"},
        )

        result = await orchestrator.check_status("t1")

        assert result == {
            "status": "FAILED",
            "progress": 0.2,
            "failure": {"reason": "Content moderated", "code": "SAFETY"},
        }
        assert object_store.writes == []

    @pytest.mark.asyncio
    async def test_status_check_error_should_raise_without_writes(
        self, orchestrator, fake_runway, object_store, job_records, image_record
    ) -> None:
        fake_runway.queue_status("t1", httpx.Response(500, json={"error": "Upstream down"}))

        with pytest.raises(ProviderError, match="Status check failed: Upstream down"):
            await orchestrator.check_status("t1")

        assert object_store.writes == []
        assert job_records.mutation_count == 0

    @pytest.mark.asyncio
    async def test_missing_task_id_should_fail_without_provider_call(
        self, orchestrator, fake_runway
    ) -> None:
        with pytest.raises(RequestValidationError, match="Invalid status check request."):
            await orchestrator.check_status(None)

        assert fake_runway.provider_calls == 0
