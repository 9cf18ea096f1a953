from __future__ import annotations

import datetime as dt
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from omnifeed.services.poller import FeedPoller

def start_scheduler(poller: FeedPoller, interval_seconds: int) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=dt.timezone.utc)
    scheduler.add_job(
        poller.run_cycle,
        IntervalTrigger(seconds=interval_seconds),
        id="feed_poll",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        # first pass right after startup
        next_run_time=dt.datetime.now(dt.timezone.utc),
    )
    scheduler.start()
    return scheduler

def shutdown_scheduler(scheduler: AsyncIOScheduler | None) -> None:
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
