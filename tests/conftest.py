from __future__ import annotations

import asyncio
import datetime as dt
from email.utils import format_datetime
from typing import Callable, Optional, Sequence

import httpx
import pytest
import pytest_asyncio

from omnifeed.core.db import make_engine
from omnifeed.core.errors import ErrorKind, FeedError
from omnifeed.core.result import Err, Ok
from omnifeed.models import FeedItem
from omnifeed.services.fetcher import Fetcher
from omnifeed.services.store import FeedStore

BASE_MS = 1_700_000_000_000


def rss_document(entries: Sequence[dict], title: str = "Test feed") -> str:
    """Build an RSS 2.0 document; each entry dict may hold title, link, description, encoded, published."""
    parts = []
    for e in entries:
        fields = []
        if "title" in e:
            fields.append(f"<title>{e['title']}</title>")
        if "link" in e:
            fields.append(f"<link>{e['link']}</link>")
        if "description" in e:
            fields.append(f"<description><![CDATA[{e['description']}]]></description>")
        if "encoded" in e:
            fields.append(f"<content:encoded><![CDATA[{e['encoded']}]]></content:encoded>")
        if "published" in e:
            when = dt.datetime.fromtimestamp(e["published"] / 1000, tz=dt.timezone.utc)
            fields.append(f"<pubDate>{format_datetime(when, usegmt=True)}</pubDate>")
        parts.append("<item>" + "".join(fields) + "</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">'
        f"<channel><title>{title}</title><link>https://example.com/</link>"
        "<description>test</description>"
        + "".join(parts)
        + "</channel></rss>"
    )


def make_items(feed_url: str, count: int, step_ms: int = 60_000, start_ms: int = BASE_MS) -> list[FeedItem]:
    return [
        FeedItem(
            title=f"Item {i}",
            link=f"{feed_url}/items/{i}",
            content=f"Body {i}",
            image="",
            published=start_ms - i * step_ms,
            feed_url=feed_url,
        )
        for i in range(count)
    ]


def mock_fetcher(handler: Callable[[httpx.Request], httpx.Response]) -> Fetcher:
    return Fetcher("omnifeed-tests/1.0", 5, transport=httpx.MockTransport(handler))


class FakeNormalizer:
    """Serves canned normalizer results and counts calls per URL."""

    def __init__(self, feeds: Optional[dict] = None, delay: float = 0.0):
        self.feeds = dict(feeds or {})
        self.delay = delay
        self.calls: dict[str, int] = {}

    async def normalize(self, feed_url: str):
        self.calls[feed_url] = self.calls.get(feed_url, 0) + 1
        if self.delay:
            await asyncio.sleep(self.delay)
        else:
            await asyncio.sleep(0)
        result = self.feeds.get(feed_url)
        if result is None:
            return Err(FeedError(ErrorKind.FETCH, feed_url, "HTTP 404"))
        if isinstance(result, FeedError):
            return Err(result)
        return Ok([FeedItem(**{**vars(item), "id": None}) for item in result])


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'omnifeed-test.db'}"


@pytest_asyncio.fixture
async def store(db_url):
    s = FeedStore(make_engine(db_url))
    await s.initialize()
    yield s
    await s.close()
