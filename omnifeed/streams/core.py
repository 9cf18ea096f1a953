from __future__ import annotations

import datetime as dt
from typing import Awaitable, Callable, Generic, Optional, Protocol, TypeVar

from omnifeed.core.errors import StreamError
from omnifeed.core.result import Err, Ok, Result
from omnifeed.models import StreamPage
from omnifeed.streams.seen import SeenSet

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

class PageFetcher(Protocol[T_co]):
    def __call__(self, cursor: Optional[str], limit: Optional[int]) -> Awaitable[Result[StreamPage[T_co], StreamError]]: ...

class Stream(Generic[T]):
    """Pull-based paginator over any source that can fetch one page for a cursor.

    Items are accumulated across pages in server order; an item whose key is
    already accumulated is not appended again. A page without a cursor ends
    the stream. A failed fetch leaves items and cursor untouched so the same
    page can be retried. One ``next_page`` call at a time per instance.
    """

    def __init__(
        self,
        fetch_page: PageFetcher[T],
        key: Callable[[T], str],
        date: Callable[[T], dt.datetime],
        limit: Optional[int] = None,
    ):
        self._fetch_page = fetch_page
        self._key = key
        self._date = date
        self._limit = limit
        self._items: list[T] = []
        self._keys: set[str] = set()
        self._cursor: Optional[str] = None
        self._exhausted = False
        self._loading = False

    @property
    def items(self) -> list[T]:
        return list(self._items)

    @property
    def cursor(self) -> Optional[str]:
        return self._cursor

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def key(self, item: T) -> str:
        return self._key(item)

    def date(self, item: T) -> dt.datetime:
        return self._date(item)

    async def next_page(self) -> Result[list[T], StreamError]:
        if self._exhausted:
            return Ok([])
        if self._loading:
            raise RuntimeError("next_page() is already in flight on this stream")

        self._loading = True
        try:
            result = await self._fetch_page(self._cursor, self._limit)
        finally:
            self._loading = False
        if isinstance(result, Err):
            return result

        page = result.value
        added = []
        for item in page.items:
            k = self._key(item)
            if k in self._keys:
                continue
            self._keys.add(k)
            self._items.append(item)
            added.append(item)
        self._cursor = page.cursor
        if page.exhausted:
            self._exhausted = True
        return Ok(added)

    def reset(self) -> None:
        self._items.clear()
        self._keys.clear()
        self._cursor = None
        self._exhausted = False

    def unseen(self, seen: SeenSet) -> list[T]:
        return [item for item in self._items if self._key(item) not in seen]
