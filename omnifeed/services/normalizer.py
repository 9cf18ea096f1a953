from __future__ import annotations

import calendar
import re
import time
from dataclasses import dataclass, field
from typing import Optional, Protocol

import feedparser
import httpx
from bs4 import BeautifulSoup
from markdownify import markdownify as mdify

from omnifeed.core.errors import ErrorKind, FeedError
from omnifeed.core.result import Err, Ok, Result
from omnifeed.models import FeedItem
from omnifeed.services.fetcher import Fetcher

BLANK_RUN_RE = re.compile(r"(?:[ \t]*(?:\r?\n|\r)){2,}")

@dataclass
class ConvertedBody:
    text: str
    image: str
    images: list[str] = field(default_factory=list)

class Normalizer(Protocol):
    async def normalize(self, feed_url: str) -> Result[list[FeedItem], FeedError]: ...

def _now_ms() -> int:
    return int(time.time() * 1000)

def _entry_published_ms(entry) -> Optional[int]:
    # feedparser exposes: published_parsed / updated_parsed as UTC time.struct_time
    for key in ("published_parsed", "updated_parsed"):
        t = entry.get(key)
        if t:
            try:
                return calendar.timegm(t) * 1000
            except (TypeError, ValueError, OverflowError):
                continue
    return None

def _entry_body(entry) -> str:
    # <content> and <content:encoded> both land in entry.content
    for part in entry.get("content") or []:
        value = part.get("value")
        if value:
            return value
    return entry.get("summary") or entry.get("description") or ""

def convert_body(html: str) -> ConvertedBody:
    if not html or not html.strip():
        return ConvertedBody(text="", image="")

    soup = BeautifulSoup(html, "lxml")
    for caption in soup.find_all("figcaption"):
        caption.decompose()

    images: list[str] = []
    for img in soup.find_all("img"):
        src = (img.get("src") or "").strip()
        if src:
            images.append(src)
        img.decompose()

    for a in soup.find_all("a"):
        a.unwrap()

    root = soup.body or soup
    text = mdify(root.decode_contents(), heading_style="ATX", escape_underscores=False, escape_asterisks=False)
    text = BLANK_RUN_RE.sub("\n\n", text).strip()
    return ConvertedBody(text=text, image=images[0] if images else "", images=images)

def normalize_entry(feed_url: str, entry) -> Optional[FeedItem]:
    title = (entry.get("title") or "").strip()
    link = (entry.get("link") or "").strip()
    if not title or not link:
        return None

    body = convert_body(_entry_body(entry))
    published = _entry_published_ms(entry)
    return FeedItem(
        title=title,
        link=link,
        content=body.text,
        image=body.image,
        published=published if published is not None else _now_ms(),
        feed_url=feed_url,
    )

def parse_feed(feed_url: str, payload: bytes | str) -> Result[list[FeedItem], FeedError]:
    parsed = feedparser.parse(payload)
    if not parsed.get("version") and not parsed.entries:
        reason = parsed.get("bozo_exception")
        message = f"not an RSS/Atom document ({reason})" if reason else "not an RSS/Atom document"
        return Err(FeedError(ErrorKind.PARSE, feed_url, message))

    items = []
    for entry in parsed.entries:
        item = normalize_entry(feed_url, entry)
        if item is not None:
            items.append(item)
    return Ok(items)

class FeedNormalizer:
    def __init__(self, fetcher: Fetcher):
        self._fetcher = fetcher

    async def normalize(self, feed_url: str) -> Result[list[FeedItem], FeedError]:
        try:
            payload = await self._fetcher.fetch_bytes(feed_url)
        except httpx.HTTPStatusError as e:
            return Err(FeedError(ErrorKind.FETCH, feed_url, f"HTTP {e.response.status_code}"))
        except httpx.HTTPError as e:
            return Err(FeedError(ErrorKind.FETCH, feed_url, f"{type(e).__name__}: {e}"))
        return parse_feed(feed_url, payload)
