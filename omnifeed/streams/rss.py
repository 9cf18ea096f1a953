from __future__ import annotations

import datetime as dt
from typing import Optional, Sequence

import httpx

from omnifeed.core.errors import StreamError
from omnifeed.core.result import Err, Ok, Result
from omnifeed.models import FeedItem, StreamPage
from omnifeed.services.fetcher import Fetcher
from omnifeed.streams.core import Stream

def rss_item_key(item: FeedItem) -> str:
    return str(item.id)

def rss_item_date(item: FeedItem) -> dt.datetime:
    return dt.datetime.fromtimestamp(item.published / 1000, tz=dt.timezone.utc)

class RssApiPages:
    """Fetches pages of ``GET /api/rss`` for a fixed set of feed URLs."""

    def __init__(self, base_url: str, feed_urls: Sequence[str], fetcher: Fetcher):
        self._endpoint = base_url.rstrip("/") + "/api/rss"
        self._feed_urls = list(feed_urls)
        self._fetcher = fetcher

    def _params(self, cursor: Optional[str]) -> list[tuple[str, str]]:
        params = [("url", u) for u in self._feed_urls]
        if cursor:
            last_published, _, last_id = cursor.partition("|")
            params += [("lastPublished", last_published), ("lastId", last_id)]
        return params

    async def __call__(self, cursor: Optional[str], limit: Optional[int] = None) -> Result[StreamPage[FeedItem], StreamError]:
        try:
            async with self._fetcher.client() as client:
                resp = await client.get(self._endpoint, params=self._params(cursor))
                if resp.status_code >= 400:
                    failed = []
                    try:
                        failed = resp.json().get("errorUrls") or []
                    except ValueError:
                        pass
                    cause = f"failed feeds: {', '.join(failed)}" if failed else f"HTTP {resp.status_code}"
                    return Err(StreamError("Couldn't get all RSS feeds", cursor=cursor, cause=cause))
                data = resp.json()
            items = [FeedItem.from_wire(raw) for raw in data.get("items", [])]
            next_cursor = None
            if data.get("nextLastPublished") is not None and data.get("nextLastId") is not None:
                next_cursor = f"{int(data['nextLastPublished'])}|{int(data['nextLastId'])}"
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            return Err(StreamError("Couldn't get all RSS feeds", cursor=cursor, cause=f"{type(e).__name__}: {e}"))

        return Ok(StreamPage(items=items, cursor=next_cursor))

def rss_stream(base_url: str, feed_urls: Sequence[str], fetcher: Fetcher) -> Stream[FeedItem]:
    return Stream(RssApiPages(base_url, feed_urls, fetcher), key=rss_item_key, date=rss_item_date)
