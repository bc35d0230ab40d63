"""
Health check API endpoints.

Routes: GET /health, GET /health/config

Dependencies: media_studio.configs
System role: Health check HTTP API
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from media_studio.api.deps import get_settings_dependency
from media_studio.configs import Settings


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", message="Server Healthy")


@router.get("/config", response_model=HealthResponse)
async def health_check_config(
    settings: Settings = Depends(get_settings_dependency),
) -> HealthResponse:
    """Report whether every required runtime setting is present."""
    missing = settings.missing_runtime_config()
    if missing:
        return HealthResponse(status="unhealthy", message=f"Missing settings: {', '.join(missing)}")
    return HealthResponse(status="healthy", message="Configuration complete")
