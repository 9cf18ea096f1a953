from __future__ import annotations

import asyncio
from typing import Optional, Sequence

from loguru import logger

from omnifeed.core.errors import FeedError, InvalidCursor, QueryError, QueryErrorKind
from omnifeed.core.result import Err, Ok, Result
from omnifeed.models import FeedItem, StreamPage
from omnifeed.services.normalizer import Normalizer
from omnifeed.services.store import FeedStore

CURSOR_SEP = "|"

def encode_cursor(last_published: int, last_id: int) -> str:
    return f"{int(last_published)}{CURSOR_SEP}{int(last_id)}"

def parse_cursor(cursor: str) -> tuple[int, int]:
    """Split ``"<lastPublished>|<lastId>"`` into two non-negative ints."""
    parts = cursor.split(CURSOR_SEP)
    if len(parts) != 2 or not all(p.isdecimal() for p in parts):
        raise InvalidCursor(f"invalid cursor: {cursor!r}")
    return int(parts[0]), int(parts[1])

class FeedQueryService:
    def __init__(self, store: FeedStore, normalizer: Normalizer, page_size: int = 25):
        self._store = store
        self._normalizer = normalizer
        self.page_size = page_size

    async def _fetch_on_miss(self, url: str) -> Optional[FeedError]:
        result = await self._normalizer.normalize(url)
        if isinstance(result, Err):
            return result.error
        inserted = await self._store.add_items(result.value)
        logger.info("fetched new feed {}: {} items, {} stored", url, len(result.value), inserted)
        return None

    async def get_page(self, feed_urls: Sequence[str], cursor: Optional[str] = None) -> Result[StreamPage[FeedItem], QueryError]:
        urls = list(dict.fromkeys(u for u in feed_urls if u))
        if not urls:
            return Err(QueryError(QueryErrorKind.MISSING_URL, "Missing url parameter"))

        last_published = last_id = None
        if cursor:
            try:
                last_published, last_id = parse_cursor(cursor)
            except InvalidCursor as e:
                return Err(QueryError(QueryErrorKind.INVALID_CURSOR, str(e)))

        known = await self._store.has_items(urls)
        missing = [url for url, has in known.items() if not has]
        if missing:
            failures = [e for e in await asyncio.gather(*(self._fetch_on_miss(u) for u in missing)) if e is not None]
            if failures:
                for failure in failures:
                    logger.warning("fetch-on-miss: {}", failure)
                return Err(QueryError(
                    QueryErrorKind.FEED_UNAVAILABLE,
                    "Couldn't get all RSS feeds",
                    failed_urls=[f.url for f in failures],
                    causes=failures,
                ))

        rows = await self._store.get_items(urls, self.page_size + 1, last_published, last_id)
        next_cursor = None
        if len(rows) > self.page_size:
            rows = rows[: self.page_size]
            last = rows[-1]
            next_cursor = encode_cursor(last.published, last.id)
        return Ok(StreamPage(items=rows, cursor=next_cursor))
