"""Recurring background re-ingestion.

:class:`DocumentProcessingScheduler` owns one cancellable ``asyncio.Task``
that sleeps until the next fire time of a cron expression (parsed with
croniter) and then launches the ingestion job as its own task.  The loop
keeps ticking while a run is in flight; a tick that lands during a run is
skipped and logged, so runs never overlap.

Lifecycle::

    scheduler = DocumentProcessingScheduler(service.process_all_documents, "0 2 * * *")
    scheduler.start()     # from inside a running event loop
    ...
    await scheduler.stop()
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

import structlog
from croniter import croniter

from docrag.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class DocumentProcessingScheduler:
    """Cron-driven, single-flight runner for a bulk ingestion job.

    Parameters
    ----------
    job:
        Coroutine function to run on every tick, typically
        ``IngestionService.process_all_documents``.
    schedule:
        Five-field cron expression, evaluated in local time.
    is_busy:
        Optional extra guard; when it returns True (e.g. a manual run holds
        the ingestion lock) the tick is skipped.
    clock:
        Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        job: Callable[[], Awaitable[Any]],
        schedule: str,
        is_busy: Callable[[], bool] | None = None,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        if not croniter.is_valid(schedule):
            raise ConfigurationError(
                message=f"Invalid cron expression for document processing: {schedule!r}",
            )
        self._job = job
        self._schedule = schedule
        self._is_busy = is_busy
        self._clock = clock
        self._loop_task: asyncio.Task[None] | None = None
        self._run_task: asyncio.Task[None] | None = None
        self._runs_started = 0
        self._runs_skipped = 0
        self._last_run_at: datetime | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def schedule(self) -> str:
        return self._schedule

    @property
    def is_started(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def is_run_in_progress(self) -> bool:
        return self._run_task is not None and not self._run_task.done()

    @property
    def runs_started(self) -> int:
        return self._runs_started

    @property
    def runs_skipped(self) -> int:
        return self._runs_skipped

    @property
    def last_run_at(self) -> datetime | None:
        return self._last_run_at

    def next_run_time(self) -> datetime:
        """Next time the cron expression fires after now."""
        return croniter(self._schedule, self._clock()).get_next(datetime)

    def start(self) -> None:
        """Begin ticking.  Calling start on a started scheduler is a no-op."""
        if self.is_started:
            return
        self._loop_task = asyncio.create_task(self._tick_loop(), name="document-processing-scheduler")
        logger.info(
            "scheduler_started",
            schedule=self._schedule,
            next_run=self.next_run_time().isoformat(),
        )

    async def stop(self) -> None:
        """Cancel the tick loop and any in-flight run, then wait for both."""
        for task in (self._loop_task, self._run_task):
            if task is not None and not task.done():
                task.cancel()
        for task in (self._loop_task, self._run_task):
            if task is not None:
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._loop_task = None
        self._run_task = None
        logger.info("scheduler_stopped", runs_started=self._runs_started)

    async def run_once(self) -> bool:
        """Run the job now unless a run is already in flight.

        Returns True when the job ran, False when it was skipped.
        """
        task = self._launch("manual")
        if task is None:
            return False
        await task
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _seconds_until_next(self) -> float:
        now = self._clock()
        upcoming = croniter(self._schedule, now).get_next(datetime)
        return max(0.0, (upcoming - now).total_seconds())

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self._seconds_until_next())
            self._launch("schedule")

    def _launch(self, trigger: str) -> asyncio.Task[None] | None:
        busy = self.is_run_in_progress or (self._is_busy is not None and self._is_busy())
        if busy:
            self._runs_skipped += 1
            logger.warning("scheduled_run_skipped", trigger=trigger, reason="run_in_progress")
            return None
        self._runs_started += 1
        self._last_run_at = self._clock()
        self._run_task = asyncio.create_task(self._guarded_run(trigger))
        return self._run_task

    async def _guarded_run(self, trigger: str) -> None:
        logger.info("scheduled_run_started", trigger=trigger)
        try:
            result = await self._job()
        except Exception as exc:
            # A failed run must not kill the tick loop.
            logger.error("scheduled_run_failed", trigger=trigger, error=str(exc))
            return
        logger.info("scheduled_run_complete", trigger=trigger, result=_summarize(result))


def _summarize(result: Any) -> Any:
    if hasattr(result, "processed") and hasattr(result, "failed"):
        return {"processed": result.processed, "failed": result.failed}
    return None
