"""APScheduler wrapper for the fixed-time daily reset."""

from __future__ import annotations

import logging
from typing import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger("quickplay.scheduler")

DAILY_RESET_JOB_ID = "statistics.daily_reset"


class DailyResetScheduler:
    """Minimal wrapper around AsyncIOScheduler for the daily-best sweep."""

    def __init__(self, *, cron: str = "0 0 * * *", timezone: str = "Etc/UTC") -> None:
        self._scheduler = AsyncIOScheduler(timezone=timezone)
        self._cron = cron
        self._timezone = timezone
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    def register(self, func: Callable[[], object]) -> None:
        trigger = CronTrigger.from_crontab(self._cron, timezone=self._timezone)
        # replace_existing only takes effect once the scheduler is running
        if self._scheduler.get_job(DAILY_RESET_JOB_ID) is not None:
            self._scheduler.remove_job(DAILY_RESET_JOB_ID)
        # One run per boundary; a missed boundary waits for the next one
        self._scheduler.add_job(
            func,
            trigger=trigger,
            id=DAILY_RESET_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info("daily reset scheduled", extra={"event_type": "scheduler.registered"})

    def start(self) -> None:
        if not self._started:
            self._scheduler.start()
            self._started = True

    def shutdown(self) -> None:
        if self._started:
            self._scheduler.shutdown(wait=False)
            self._started = False


__all__ = ["DailyResetScheduler", "DAILY_RESET_JOB_ID"]
