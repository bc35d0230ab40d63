"""
Studio client.

Talks to the /ai endpoint, drives one poll per task category to a
terminal state and chains image → video → upscale.
"""

from media_studio.client.api_client import StudioApiClient, StudioClientError
from media_studio.client.poll_controller import (
    CategoryPoller,
    PollController,
    PollState,
    TaskCategory,
    TaskView,
)
from media_studio.client.session import SourceFileError, StudioSession

__all__ = [
    "CategoryPoller",
    "PollController",
    "PollState",
    "SourceFileError",
    "StudioApiClient",
    "StudioClientError",
    "StudioSession",
    "TaskCategory",
    "TaskView",
]
