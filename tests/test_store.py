"""
Tests for FeedStore: dedup on (feed_url, link), canonical order and keyset pages.
"""

import asyncio

import pytest

from omnifeed.models import FeedItem

from tests.conftest import BASE_MS, make_items

FEED_A = "https://a.example.com/rss"
FEED_B = "https://b.example.com/rss"


async def _walk_pages(store, urls, page_size):
    pages = []
    last_published = last_id = None
    while True:
        page = await store.get_items(urls, page_size, last_published, last_id)
        if not page:
            break
        pages.append(page)
        last_published, last_id = page[-1].published, page[-1].id
    return pages


@pytest.mark.integration
class TestFeedStore:

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, store):
        await store.initialize()
        await store.initialize()
        assert await store.count_items() == 0

    @pytest.mark.asyncio
    async def test_insert_twice_keeps_one_row_per_link(self, store):
        items = make_items(FEED_A, 10)
        assert await store.add_items(items) == 10
        count_after_first = await store.count_items()

        assert await store.add_items(items) == 0
        assert await store.count_items() == count_after_first == 10

    @pytest.mark.asyncio
    async def test_first_write_wins(self, store):
        original = make_items(FEED_A, 1)[0]
        changed = FeedItem(**{**vars(original), "title": "Rewritten"})
        await store.add_items([original])
        await store.add_items([changed])

        [row] = await store.get_items([FEED_A], 10)
        assert row.title == original.title

    @pytest.mark.asyncio
    async def test_same_link_in_two_feeds_is_two_rows(self, store):
        a = make_items(FEED_A, 1)[0]
        b = FeedItem(**{**vars(a), "feed_url": FEED_B})
        assert await store.add_items([a, b]) == 2
        assert await store.count_items([FEED_A]) == 1
        assert await store.count_items([FEED_B]) == 1

    @pytest.mark.asyncio
    async def test_ordering_published_desc_then_id_desc(self, store):
        # Three items share a timestamp; their ids break the tie
        tied = [
            FeedItem(title=f"T{i}", link=f"https://a.example.com/t{i}", content="", image="",
                     published=BASE_MS, feed_url=FEED_A)
            for i in range(3)
        ]
        older = make_items(FEED_A, 3, start_ms=BASE_MS - 1000)
        newer = make_items(FEED_B, 2, start_ms=BASE_MS + 5000)
        await store.add_items(older + tied + newer)

        rows = await store.get_items([FEED_A, FEED_B], 100)
        keys = [(r.published, r.id) for r in rows]
        assert keys == sorted(keys, reverse=True)
        assert [r.title for r in rows if r.published == BASE_MS] == ["T2", "T1", "T0"]
        assert len(rows) == 8

    @pytest.mark.asyncio
    async def test_filters_by_feed_url(self, store):
        await store.add_items(make_items(FEED_A, 3) + make_items(FEED_B, 4))
        rows = await store.get_items([FEED_B], 100)
        assert {r.feed_url for r in rows} == {FEED_B}
        assert len(rows) == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page_size", [1, 4, 7, 13])
    async def test_pages_concatenate_to_full_listing(self, store, page_size):
        # Every other pair shares a timestamp
        items = []
        for i in range(13):
            items.append(FeedItem(title=f"I{i}", link=f"https://a.example.com/{i}", content="", image="",
                                  published=BASE_MS - (i // 2) * 1000, feed_url=FEED_A))
        await store.add_items(items)

        full = await store.get_items([FEED_A], 100)
        pages = await _walk_pages(store, [FEED_A], page_size)

        flattened = [r for page in pages for r in page]
        assert [r.id for r in flattened] == [r.id for r in full]
        assert all(len(p) == page_size for p in pages[:-1])

    @pytest.mark.asyncio
    async def test_cursor_excludes_boundary_row(self, store):
        await store.add_items(make_items(FEED_A, 5))
        first = await store.get_items([FEED_A], 2)
        second = await store.get_items([FEED_A], 2, first[-1].published, first[-1].id)
        assert {r.id for r in first}.isdisjoint({r.id for r in second})
        assert second[0].published < first[-1].published

    @pytest.mark.asyncio
    async def test_has_items(self, store):
        await store.add_items(make_items(FEED_A, 1))
        assert await store.has_items([FEED_A, FEED_B]) == {FEED_A: True, FEED_B: False}
        assert await store.has_items([]) == {}

    @pytest.mark.asyncio
    async def test_known_feed_urls_are_distinct(self, store):
        await store.add_items(make_items(FEED_B, 3) + make_items(FEED_A, 2))
        assert await store.known_feed_urls() == [FEED_A, FEED_B]

    @pytest.mark.asyncio
    async def test_concurrent_writers_do_not_duplicate(self, store):
        items = make_items(FEED_A, 20)
        inserted = await asyncio.gather(store.add_items(items), store.add_items(items), store.add_items(items))
        assert sum(inserted) == 20
        assert await store.count_items() == 20
