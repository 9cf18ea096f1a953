from __future__ import annotations

import asyncio
import datetime as dt
from dataclasses import dataclass, field

from loguru import logger

from omnifeed.core.errors import FeedError
from omnifeed.core.result import Err
from omnifeed.services.normalizer import Normalizer
from omnifeed.services.store import FeedStore

@dataclass
class PollStats:
    feeds_processed: int = 0
    items_seen: int = 0
    inserted: int = 0
    errors: list[FeedError] = field(default_factory=list)

    @property
    def duplicates(self) -> int:
        return self.items_seen - self.inserted

class FeedPoller:
    """Re-fetches every known feed URL and pushes fresh items into the store.

    ``run_cycle`` does one pass. ``run`` repeats it forever with a
    cancellable wait between passes; ``stop`` ends the loop at the next wait.
    """

    def __init__(self, store: FeedStore, normalizer: Normalizer, interval_seconds: float = 15 * 60, concurrency: int = 8):
        self._store = store
        self._normalizer = normalizer
        self._interval = interval_seconds
        self._concurrency = max(1, concurrency)
        self._stop = asyncio.Event()
        self.cycles = 0

    async def _poll_feed(self, url: str, sem: asyncio.Semaphore, stats: PollStats) -> None:
        async with sem:
            result = await self._normalizer.normalize(url)
        if isinstance(result, Err):
            logger.warning("poll: {}", result.error)
            stats.errors.append(result.error)
            return
        items = result.value
        stats.items_seen += len(items)
        stats.inserted += await self._store.add_items(items)
        stats.feeds_processed += 1

    async def run_cycle(self) -> PollStats:
        started_at = dt.datetime.now(dt.timezone.utc)
        stats = PollStats()
        urls = await self._store.known_feed_urls()
        sem = asyncio.Semaphore(self._concurrency)
        # StorageError aborts the whole cycle
        await asyncio.gather(*(self._poll_feed(url, sem, stats) for url in urls))
        self.cycles += 1
        elapsed = (dt.datetime.now(dt.timezone.utc) - started_at).total_seconds()
        logger.info(
            "poll cycle done in {:.1f}s: {} feeds, {} items, {} new, {} failed",
            elapsed, stats.feeds_processed, stats.items_seen, stats.inserted, len(stats.errors),
        )
        return stats

    async def run(self) -> None:
        while not self._stop.is_set():
            try:
                await self.run_cycle()
            except asyncio.CancelledError:
                raise
            except Exception:
                # next cycle is the retry
                logger.exception("poll cycle failed")
            if await self._wait(self._interval):
                break
        logger.info("poller stopped after {} cycles", self.cycles)

    async def _wait(self, seconds: float) -> bool:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    def stop(self) -> None:
        self._stop.set()
