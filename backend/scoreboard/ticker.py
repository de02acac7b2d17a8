"""Cancellable interval timers on the running asyncio loop."""

from __future__ import annotations

import logging
from typing import Any, Callable

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers import SchedulerNotRunningError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Any]


class TickerHandle:
    """Handle for one scheduled timer."""

    def __init__(self, job: Job, name: str):
        self._job = job
        self.name = name
        self.cancelled = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        try:
            self._job.remove()
        except (JobLookupError, SchedulerNotRunningError) as e:
            logger.debug(f"Timer {self.name} already gone: {e}")


class Ticker:
    """Owns every low-frequency timer of one dashboard view.

    Must be started from inside a running event loop. `shutdown()` cancels
    all timers at once.
    """

    def __init__(self) -> None:
        self._scheduler: AsyncIOScheduler | None = None
        self._handles: list[TickerHandle] = []

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        if self.running:
            return
        self._scheduler = AsyncIOScheduler()
        self._scheduler.start()
        logger.debug("Ticker started")

    def every(self, seconds: float, callback: TickCallback, name: str) -> TickerHandle:
        """Call `callback` every `seconds` until cancelled."""
        if not self.running:
            raise RuntimeError("Ticker must be started before scheduling timers")

        job = self._scheduler.add_job(
            callback,
            IntervalTrigger(seconds=seconds),
            id=name,
            name=name,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        handle = TickerHandle(job, name)
        self._handles.append(handle)
        logger.info(f"Registered timer: {name} (every {seconds:g}s)")
        return handle

    @property
    def handles(self) -> list[TickerHandle]:
        return [h for h in self._handles if not h.cancelled]

    def shutdown(self) -> None:
        for handle in self._handles:
            handle.cancelled = True
        self._handles.clear()

        if self._scheduler is not None:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.debug("Ticker stopped")
