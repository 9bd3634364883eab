"""APScheduler wrapper that fires the collector on a fixed interval."""

import logging
import traceback
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MISSED
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger("job_relay.scheduler")

POLL_JOB_ID = "poll_page"


def _job_listener(event):
    """Log scheduler job events for debugging."""
    if event.exception:
        logger.error("Scheduled job %s FAILED: %s", event.job_id, event.exception)
    elif event.code == EVENT_JOB_MISSED:
        logger.warning("Scheduled job %s MISSED its fire time", event.job_id)
    else:
        logger.debug("Scheduled job %s executed", event.job_id)


class PollScheduler:
    """Start/stop/pause/resume control over a periodic callback.

    A tick already running is never interrupted; pause and stop take effect
    before the next one.
    """

    def __init__(
        self,
        callback: Callable[[], object],
        interval_seconds: float = 300,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self.callback = callback
        self.interval_seconds = interval_seconds
        self._scheduler = scheduler or BackgroundScheduler()
        self._scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MISSED)

    def start(self, run_immediately: bool = True) -> None:
        if self._scheduler.running:
            return

        kwargs = {}
        if run_immediately:
            kwargs["next_run_time"] = datetime.now(timezone.utc)

        self._scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=POLL_JOB_ID,
            name="Poll listing page",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
            **kwargs,
        )
        self._scheduler.start()
        logger.info("Polling started (every %s seconds)", self.interval_seconds)

    def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Polling stopped")

    def pause(self) -> None:
        if self._scheduler.get_job(POLL_JOB_ID):
            self._scheduler.pause_job(POLL_JOB_ID)
            logger.info("Polling paused")

    def resume(self) -> None:
        if self._scheduler.get_job(POLL_JOB_ID):
            self._scheduler.resume_job(POLL_JOB_ID)
            logger.info("Polling resumed")

    def trigger_now(self):
        """Run one tick synchronously, outside the schedule."""
        return self._tick()

    @property
    def is_running(self) -> bool:
        return self._scheduler.running

    @property
    def is_paused(self) -> bool:
        job = self._scheduler.get_job(POLL_JOB_ID)
        return job is not None and job.next_run_time is None

    @property
    def next_run_time(self):
        job = self._scheduler.get_job(POLL_JOB_ID)
        return job.next_run_time if job else None

    def _tick(self):
        logger.info("=== POLL TICK ===")
        try:
            return self.callback()
        except Exception:
            logger.error("=== POLL TICK FAILED ===\n%s", traceback.format_exc())
            raise
