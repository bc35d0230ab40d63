"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    get_job_orchestrator,
    get_service_cache,
    get_settings_dependency,
    require_runtime_config,
)

__all__ = [
    "get_job_orchestrator",
    "get_service_cache",
    "get_settings_dependency",
    "require_runtime_config",
]
