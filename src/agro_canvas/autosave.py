"""Auto-save scheduler - periodically persists the tracked project."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from agro_canvas.config import settings
from agro_canvas.repositories.project_store import ProjectStore
from agro_canvas.results import OperationResult
from agro_canvas.schemas import ProjectData

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class AutoSaveScheduler:
    """Saves the tracked project on a fixed interval.

    Each tick goes through ``ProjectStore.save_current_project``, the same
    path as a manual save. At most one timer task is live per scheduler;
    ``start`` cancels any previous one first.
    """

    def __init__(
        self,
        store: ProjectStore,
        interval_minutes: float | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        if interval_minutes is None:
            interval_minutes = settings.auto_save_interval_minutes
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")

        self.store = store
        self.interval_minutes = interval_minutes
        self._sleep = sleep
        self._project: ProjectData | None = None
        self._task: asyncio.Task | None = None
        self.save_count = 0
        self.last_result: OperationResult[ProjectData] | None = None

    @classmethod
    def from_preferences(cls, store: ProjectStore, **kwargs) -> "AutoSaveScheduler":
        """Build a scheduler using the interval from the stored user preferences."""
        return cls(store, store.get_auto_save_interval(), **kwargs)

    @property
    def interval_seconds(self) -> float:
        return self.interval_minutes * 60

    @property
    def project(self) -> ProjectData | None:
        return self._project

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, project: ProjectData) -> None:
        """Track ``project`` and (re)start the timer.

        Must be called while an event loop is running.
        """
        self.stop()
        self._project = project
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Auto-save started (every %g minutes)", self.interval_minutes)

    def stop(self) -> None:
        """Cancel the timer. Safe to call when already stopped."""
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.info("Auto-save stopped")

    def update_project(self, project: ProjectData) -> None:
        """Swap the tracked project without touching the timer."""
        self._project = project

    def tick(self) -> OperationResult[ProjectData] | None:
        """Save the tracked project once. Returns None if nothing is tracked."""
        project = self._project
        if project is None:
            return None

        result = self.store.save_current_project(project)
        self.save_count += 1
        self.last_result = result
        if not result.ok:
            logger.warning("Auto-save failed: %s", result.error)
        return result

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval_seconds)
            try:
                self.tick()
            except Exception:
                logger.exception("Error in auto-save loop")
