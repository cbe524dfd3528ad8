"""
Background job runner.

Spawns one fire-and-forget task per submitted job and supervises it: the
task is kept referenced until it finishes and any exception that escapes
the job's own handling is logged instead of vanishing with the task.
"""

import asyncio
from typing import Coroutine, Optional, Set

from shared.logging import get_logger, set_job_id

logger = get_logger("background")


class BackgroundRunner:
    """Supervisor for per-job background tasks on the running event loop."""

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def spawn(
        self,
        coro: Coroutine,
        job_id: Optional[str] = None,
        name: Optional[str] = None
    ) -> asyncio.Task:
        """
        Schedule a coroutine and return immediately.

        Args:
            coro: Job processing coroutine
            job_id: Job ID bound to the task's logging context
            name: Task name for diagnostics

        Returns:
            The created task
        """
        task = asyncio.create_task(self._supervise(coro, job_id), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _supervise(self, coro: Coroutine, job_id: Optional[str]) -> None:
        set_job_id(job_id)
        try:
            await coro
        except asyncio.CancelledError:
            logger.warning("Background job cancelled", extra={"job_id": job_id})
            raise
        except Exception as e:
            logger.error(
                "Unexpected error in background job",
                exc_info=e,
                extra={"job_id": job_id}
            )

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every spawned task (including ones spawned meanwhile) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel outstanding tasks and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if tasks:
            logger.info("Background runner stopped", extra={"cancelled": len(tasks)})
