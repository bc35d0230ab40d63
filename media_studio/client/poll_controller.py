"""
Per-category task polling.

Each task category (image, video, upscale) owns one CategoryPoller with its
own timer. Starting a task cancels the category's previous timer, so at most
one task per category is tracked. Other categories are left alone.

Dependencies: asyncio, media_studio.client.api_client
System role: Client-side job state machine
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable

from media_studio.client.api_client import StudioApiClient, StudioClientError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 4.0


class TaskCategory(str, Enum):
    """Kind of task a poller tracks."""

    IMAGE = "image"
    VIDEO = "video"
    UPSCALE = "upscale"

    @property
    def url_field(self) -> str:
        """Status field that carries the finished asset URL."""
        return "imageUrl" if self is TaskCategory.IMAGE else "videoUrl"

    @property
    def success_message(self) -> str:
        return {
            TaskCategory.IMAGE: "Image generated successfully!",
            TaskCategory.VIDEO: "Video generation completed!",
            TaskCategory.UPSCALE: "Video upscaled to 4K successfully!",
        }[self]


class PollState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class TaskView:
    """What the UI shows for one category."""

    category: TaskCategory
    state: PollState = PollState.IDLE
    task_id: str | None = None
    status_text: str = ""
    progress: int = 0
    result_url: str | None = None
    asset_id: str | None = None
    error: str | None = None


Listener = Callable[[TaskView], None]


def progress_percent(progress: float | None) -> int:
    """Provider progress fraction as a whole percentage."""
    return round((progress or 0) * 100)


class CategoryPoller:
    """
    Polling state machine for one task category.

    States: IDLE -> POLLING -> SUCCEEDED | FAILED. A new start() from any
    state goes back to POLLING for the new task.
    """

    def __init__(
        self,
        category: TaskCategory,
        api_client: StudioApiClient,
        interval_seconds: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.category = category
        self._api = api_client
        self._interval = interval_seconds
        self._timer: asyncio.Task | None = None
        self._listeners: list[Listener] = []
        self.view = TaskView(category=category)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    @property
    def is_polling(self) -> bool:
        return self.view.state is PollState.POLLING

    @property
    def has_timer(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self, task_id: str) -> None:
        """
        Begin tracking a task, superseding any task this category tracked.

        Must be called from a running event loop.
        """
        self.stop()
        self._update(TaskView(category=self.category, state=PollState.POLLING, task_id=task_id))
        self._timer = asyncio.get_running_loop().create_task(self._run(task_id))
        logger.info(
            "Polling started", extra={"category": self.category.value, "task_id": task_id}
        )

    def stop(self) -> asyncio.Task | None:
        """
        Cancel the timer. The provider job itself keeps running.

        Returns:
            asyncio.Task | None: The cancelled timer, if one was running
        """
        timer, self._timer = self._timer, None
        if timer is None or timer.done() or timer is asyncio.current_task():
            return None
        timer.cancel()
        return timer

    def reset(self) -> None:
        """Stop tracking the current task and return to IDLE."""
        self.stop()
        if self.view.state is not PollState.IDLE:
            self._update(TaskView(category=self.category))

    async def _run(self, task_id: str) -> None:
        while self.view.task_id == task_id and self.is_polling:
            await asyncio.sleep(self._interval)
            await self.tick()

    async def tick(self) -> TaskView:
        """
        Perform one status check and apply the resulting transition.

        Returns:
            TaskView: View after the transition (unchanged when not polling)
        """
        if not self.is_polling:
            return self.view
        task_id = self.view.task_id

        try:
            data = await self._api.check_status(task_id, self.category.value)
        except StudioClientError as e:
            if self.view.task_id == task_id:
                self._finish(PollState.FAILED, error=e.message)
            return self.view

        if self.view.task_id != task_id or not self.is_polling:
            # Superseded by a newer task while the call was in flight
            return self.view

        status = data.get("status")
        percent = progress_percent(data.get("progress"))
        view = replace(self.view, status_text=f"Status: {status} ({percent}%)", progress=percent)

        url = data.get(self.category.url_field)
        if status == "SUCCEEDED" and url:
            self._finish(
                PollState.SUCCEEDED,
                base=view,
                status_text=self.category.success_message,
                result_url=url,
                asset_id=data.get("assetId"),
            )
        elif status == "FAILED":
            reason = (data.get("failure") or {}).get("reason")
            self._finish(
                PollState.FAILED,
                base=view,
                error=reason or f"{self.category.value} generation failed",
            )
        else:
            self._update(view)
        return self.view

    def _finish(self, state: PollState, base: TaskView | None = None, **changes) -> None:
        self.stop()
        self._update(replace(base or self.view, state=state, **changes))
        logger.info(
            "Polling finished",
            extra={"category": self.category.value, "task_id": self.view.task_id, "state": state.value},
        )

    def _update(self, view: TaskView) -> None:
        self.view = view
        for listener in self._listeners:
            listener(view)


class PollController:
    """One CategoryPoller per task category."""

    def __init__(
        self,
        api_client: StudioApiClient,
        interval_seconds: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._pollers = {
            category: CategoryPoller(category, api_client, interval_seconds)
            for category in TaskCategory
        }

    def add_listener(self, listener: Listener) -> None:
        """Receive every category's view after each transition."""
        for poller in self._pollers.values():
            poller.add_listener(listener)

    def poller(self, category: TaskCategory) -> CategoryPoller:
        return self._pollers[category]

    def view(self, category: TaskCategory) -> TaskView:
        return self._pollers[category].view

    def start(self, task_id: str, category: TaskCategory) -> None:
        self._pollers[category].start(task_id)

    def stop(self, category: TaskCategory) -> None:
        self._pollers[category].stop()

    def reset(self, category: TaskCategory) -> None:
        self._pollers[category].reset()

    async def tick(self, category: TaskCategory) -> TaskView:
        return await self._pollers[category].tick()

    async def close(self) -> None:
        """Cancel every category's timer."""
        timers = [t for t in (p.stop() for p in self._pollers.values()) if t is not None]
        await asyncio.gather(*timers, return_exceptions=True)
