from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import quote

import httpx

from omnifeed.core.errors import StreamError
from omnifeed.core.result import Err, Ok, Result
from omnifeed.models import StreamPage
from omnifeed.services.fetcher import Fetcher
from omnifeed.streams.core import Stream

REDDIT_BASE = "https://www.reddit.com"

SORTINGS = ("hot", "new", "rising", "top-today", "top-week", "top-month", "top-year", "top-alltime")

# reddit calls the all-time range "all"
_TIME_RANGES = {"today": "day", "alltime": "all"}

@dataclass
class RedditPost:
    id: str
    title: str
    author: str
    subreddit: str
    url: str
    permalink: str
    created_utc: float
    score: int = 0
    num_comments: int = 0
    is_self: bool = False
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_listing_child(cls, child: dict) -> "RedditPost":
        d = child.get("data") or {}
        return cls(
            id=d["id"],
            title=d.get("title") or "",
            author=d.get("author") or "",
            subreddit=d.get("subreddit") or "",
            url=d.get("url") or "",
            permalink=REDDIT_BASE + (d.get("permalink") or ""),
            created_utc=float(d.get("created_utc") or 0),
            score=int(d.get("score") or 0),
            num_comments=int(d.get("num_comments") or 0),
            is_self=bool(d.get("is_self")),
            raw=d,
        )

def reddit_post_key(post: RedditPost) -> str:
    return post.id

def reddit_post_date(post: RedditPost) -> dt.datetime:
    return dt.datetime.fromtimestamp(post.created_utc, tz=dt.timezone.utc)

def listing_url(subreddits: str, sort: str) -> tuple[str, dict[str, Any]]:
    if sort not in SORTINGS:
        raise ValueError(f"unknown reddit sorting: {sort}")
    sort_type, _, time_range = sort.partition("-")
    params: dict[str, Any] = {}
    if time_range:
        params["t"] = _TIME_RANGES.get(time_range, time_range)
    return f"{REDDIT_BASE}/r/{quote(subreddits, safe='+')}/{sort_type}/.json", params

class RedditListingPages:
    def __init__(self, subreddits: str, sort: str, fetcher: Fetcher):
        self._url, self._params = listing_url(subreddits, sort)
        self._subreddits = subreddits
        self._fetcher = fetcher

    async def __call__(self, cursor: Optional[str], limit: Optional[int] = None) -> Result[StreamPage[RedditPost], StreamError]:
        params = dict(self._params)
        if cursor:
            params["after"] = cursor
        if limit:
            params["limit"] = limit
        try:
            listing = await self._fetcher.fetch_json(self._url, params=params)
            data = listing.get("data") if isinstance(listing, dict) else None
            if not data or data.get("children") is None:
                raise ValueError("No data in response")
            posts = [RedditPost.from_listing_child(c) for c in data["children"]]
        except (httpx.HTTPError, ValueError, KeyError) as e:
            return Err(StreamError(
                f"Couldn't fetch page {cursor} for subreddit {self._subreddits}",
                cursor=cursor,
                cause=f"{type(e).__name__}: {e}",
            ))
        return Ok(StreamPage(items=posts, cursor=data.get("after") or None))

def reddit_stream(subreddits: str, sort: str, fetcher: Fetcher) -> Stream[RedditPost]:
    return Stream(RedditListingPages(subreddits, sort, fetcher), key=reddit_post_key, date=reddit_post_date)
