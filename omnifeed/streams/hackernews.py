from __future__ import annotations

import asyncio
import datetime as dt
from dataclasses import dataclass, field
from typing import Optional

import httpx

from omnifeed.core.errors import StreamError
from omnifeed.core.result import Err, Ok, Result
from omnifeed.models import StreamPage
from omnifeed.services.fetcher import Fetcher
from omnifeed.streams.core import Stream

HN_API = "https://hacker-news.firebaseio.com/v0"
HN_SITE = "https://news.ycombinator.com"

SORTINGS = ("topstories", "newstories", "askstories", "showstories", "jobstories")
PAGE_SIZE = 25

@dataclass
class HackerNewsPost:
    id: int
    url: str
    title: str
    author: str
    author_url: str
    created_at: int  # unix seconds
    num_comments: int
    points: int
    content: str
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_item(cls, raw: dict) -> "HackerNewsPost":
        post_id = int(raw["id"])
        author = raw.get("by") or ""
        text = raw.get("text")
        return cls(
            id=post_id,
            url=raw.get("url") or f"{HN_SITE}/item?id={post_id}",
            title=raw.get("title") or "",
            author=author,
            author_url=f"{HN_SITE}/user?id={author}",
            created_at=int(raw.get("time") or 0),
            num_comments=int(raw.get("descendants") or 0),
            points=int(raw.get("score") or 0),
            content=f"<p>{text}" if text else "",
            raw=raw,
        )

def hn_post_key(post: HackerNewsPost) -> str:
    return str(post.id)

def hn_post_date(post: HackerNewsPost) -> dt.datetime:
    return dt.datetime.fromtimestamp(post.created_at, tz=dt.timezone.utc)

class HackerNewsPages:
    """Pages over one of the firebase story lists; the cursor is the next start index."""

    def __init__(self, sorting: str, fetcher: Fetcher):
        if sorting not in SORTINGS:
            raise ValueError(f"unknown hacker news sorting: {sorting}")
        self._sorting = sorting
        self._fetcher = fetcher

    async def __call__(self, cursor: Optional[str], limit: Optional[int] = None) -> Result[StreamPage[HackerNewsPost], StreamError]:
        page_size = limit or PAGE_SIZE
        try:
            start = int(cursor) if cursor else 0
            story_ids = await self._fetcher.fetch_json(f"{HN_API}/{self._sorting}.json")
            window = story_ids[start:start + page_size]
            raw_items = await asyncio.gather(
                *(self._fetcher.fetch_json(f"{HN_API}/item/{story_id}.json") for story_id in window)
            )
        except (httpx.HTTPError, ValueError, TypeError) as e:
            return Err(StreamError("Couldn't load Hackernews posts.", cursor=cursor, cause=f"{type(e).__name__}: {e}"))

        # deleted items come back as null
        posts = [HackerNewsPost.from_item(raw) for raw in raw_items if raw]
        end = start + page_size
        next_cursor = str(end) if window and end < len(story_ids) else None
        return Ok(StreamPage(items=posts, cursor=next_cursor))

def hackernews_stream(sorting: str, fetcher: Fetcher) -> Stream[HackerNewsPost]:
    return Stream(HackerNewsPages(sorting, fetcher), key=hn_post_key, date=hn_post_date)
