"""Service orchestrators."""

from .job_orchestrator import JobOrchestrator

__all__ = [
    "JobOrchestrator",
]
