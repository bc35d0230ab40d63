"""
AI generation endpoint.

Routes:
- OPTIONS /ai - CORS preflight
- POST /ai (multipart/form-data) - Start a video job from an uploaded image
- POST /ai (application/json) - generateImage, startVideoFromUrl,
  upscaleVideo and status actions selected by the "action" field
- any other method on /ai - 405

Dependencies: media_studio.application.services, media_studio.models
System role: Generation HTTP API
"""

import logging
from typing import Any, TypeVar

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from media_studio.api.deps import get_job_orchestrator
from media_studio.application.services.job_orchestrator import JobOrchestrator
from media_studio.core.exceptions import RequestValidationError
from media_studio.models.requests import (
    Action,
    GenerateImageRequest,
    StartVideoFromUrlRequest,
    StatusRequest,
    UpscaleVideoRequest,
)

from .ai_error_handling import CORS_PREFLIGHT_HEADERS, handle_ai_errors, json_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ai"])

M = TypeVar("M", bound=BaseModel)

UNSUPPORTED_METHODS = ["GET", "HEAD", "PUT", "PATCH", "DELETE"]


@router.options("/ai")
async def ai_preflight() -> Response:
    """Answer CORS preflight with permissive headers."""
    return Response(status_code=204, headers=CORS_PREFLIGHT_HEADERS)


@router.api_route("/ai", methods=UNSUPPORTED_METHODS, include_in_schema=False)
async def ai_method_not_allowed() -> PlainTextResponse:
    return PlainTextResponse("Method not allowed", status_code=405)


@router.post("/ai")
@handle_ai_errors
async def ai_endpoint(
    request: Request,
    background_tasks: BackgroundTasks,
    orchestrator: JobOrchestrator = Depends(get_job_orchestrator),
) -> JSONResponse:
    """
    Submit generation jobs and report their status.

    Multipart bodies start a video job from the uploaded "image" file.
    JSON bodies are dispatched on their "action" field.

    Args:
        request: Incoming request (body parsed according to content type)
        background_tasks: Runs job record cleanup after the response
        orchestrator: Injected JobOrchestrator

    Returns:
        JSONResponse: {success: true, ...action fields} or
            {success: false, error} with HTTP 500

    Example Response (status, finished image):
        {
            "success": true,
            "status": "SUCCEEDED",
            "progress": 1,
            "imageUrl": "https://media.example.com/generated-images/1724300000000-a_red_fox.png"
        }
    """
    content_type = request.headers.get("content-type", "")

    if "multipart/form-data" in content_type:
        async with request.form() as form:
            image = form.get("image")
            upload = image if isinstance(image, UploadFile) else None
            result = await orchestrator.submit_video_from_upload(
                prompt=_form_text(form.get("prompt")),
                image=upload.file if upload else None,
                filename=upload.filename if upload else None,
                content_type=upload.content_type if upload else None,
                duration=_form_text(form.get("duration")),
                ratio=_form_text(form.get("ratio")),
            )
        return json_response({"success": True, **result})

    if "application/json" in content_type:
        body = await _read_json(request)
        result = await _dispatch_action(body, orchestrator, background_tasks)
        return json_response({"success": True, **result})

    raise RequestValidationError("Invalid request content-type.")


async def _dispatch_action(
    body: dict[str, Any],
    orchestrator: JobOrchestrator,
    background_tasks: BackgroundTasks,
) -> dict:
    action = body.get("action")

    if action == Action.GENERATE_IMAGE.value:
        req = _parse(GenerateImageRequest, body)
        return await orchestrator.submit_image(req.prompt, req.ratio)

    if action == Action.START_VIDEO_FROM_URL.value:
        req = _parse(StartVideoFromUrlRequest, body)
        return await orchestrator.submit_video_from_url(
            req.video_prompt, req.image_url, req.duration, req.ratio
        )

    if action == Action.UPSCALE_VIDEO.value:
        req = _parse(UpscaleVideoRequest, body)
        return await orchestrator.submit_upscale(req.asset_id)

    if action == Action.STATUS.value:
        req = _parse(StatusRequest, body)
        return await orchestrator.check_status(
            req.task_id, schedule_cleanup=background_tasks.add_task
        )

    raise RequestValidationError("Invalid action specified.", field="action")


async def _read_json(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise RequestValidationError("Request body is not valid JSON.")
    if not isinstance(body, dict):
        raise RequestValidationError("Request body must be a JSON object.")
    return body


def _parse(model: type[M], body: dict[str, Any]) -> M:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise RequestValidationError(f"Invalid value for {field}: {first.get('msg')}", field=field)


def _form_text(value: Any) -> str | None:
    # A file sent where text is expected counts as missing
    return value if isinstance(value, str) else None
