"""
Tests for FeedPoller cycles and loop shutdown.
"""

import asyncio

import pytest

from omnifeed.core.errors import ErrorKind, FeedError
from omnifeed.services.poller import FeedPoller

from tests.conftest import FakeNormalizer, make_items

FEED_A = "https://a.example.com/rss"
FEED_B = "https://b.example.com/rss"


@pytest.mark.integration
class TestFeedPoller:

    @pytest.mark.asyncio
    async def test_cycle_ingests_fresh_items_for_known_feeds(self, store):
        await store.add_items(make_items(FEED_A, 2))
        normalizer = FakeNormalizer({FEED_A: make_items(FEED_A, 5)})

        stats = await FeedPoller(store, normalizer).run_cycle()

        assert stats.feeds_processed == 1
        assert stats.items_seen == 5
        assert stats.inserted == 3
        assert stats.duplicates == 2
        assert await store.count_items() == 5

    @pytest.mark.asyncio
    async def test_one_failing_feed_does_not_stop_the_cycle(self, store):
        await store.add_items(make_items(FEED_A, 1) + make_items(FEED_B, 1))
        normalizer = FakeNormalizer({
            FEED_A: FeedError(ErrorKind.FETCH, FEED_A, "HTTP 500"),
            FEED_B: make_items(FEED_B, 4),
        })

        stats = await FeedPoller(store, normalizer).run_cycle()

        assert [e.url for e in stats.errors] == [FEED_A]
        assert stats.feeds_processed == 1
        assert await store.count_items([FEED_B]) == 4

    @pytest.mark.asyncio
    async def test_empty_store_is_a_no_op(self, store):
        normalizer = FakeNormalizer()
        stats = await FeedPoller(store, normalizer).run_cycle()
        assert stats.feeds_processed == 0
        assert normalizer.calls == {}

    @pytest.mark.asyncio
    async def test_run_repeats_until_stopped(self, store):
        await store.add_items(make_items(FEED_A, 1))
        poller = FeedPoller(store, FakeNormalizer({FEED_A: make_items(FEED_A, 1)}), interval_seconds=0.01)

        task = asyncio.create_task(poller.run())
        while poller.cycles < 3:
            await asyncio.sleep(0.01)
        poller.stop()
        await asyncio.wait_for(task, timeout=2)

        assert task.done()
        assert poller.cycles >= 3

    @pytest.mark.asyncio
    async def test_run_survives_a_failing_cycle(self, store):
        class FlakyStore:
            def __init__(self):
                self.calls = 0

            async def known_feed_urls(self):
                self.calls += 1
                if self.calls == 1:
                    raise RuntimeError("database is locked")
                return []

        flaky = FlakyStore()
        poller = FeedPoller(flaky, FakeNormalizer(), interval_seconds=0.01)
        task = asyncio.create_task(poller.run())
        while poller.cycles < 1:
            await asyncio.sleep(0.01)
        poller.stop()
        await asyncio.wait_for(task, timeout=2)
        assert flaky.calls >= 2
