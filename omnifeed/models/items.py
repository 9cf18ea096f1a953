from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

@dataclass
class FeedItem:
    title: str
    link: str
    content: str
    image: str
    published: int  # UTC milliseconds
    feed_url: str
    id: Optional[int] = None

    def to_wire(self) -> dict:
        return asdict(self)

    @classmethod
    def from_wire(cls, data: dict) -> "FeedItem":
        return cls(
            id=data.get("id"),
            feed_url=data["feed_url"],
            title=data["title"],
            link=data["link"],
            content=data.get("content") or "",
            image=data.get("image") or "",
            published=int(data["published"]),
        )

@dataclass
class StreamPage(Generic[T]):
    items: list[T] = field(default_factory=list)
    cursor: Optional[str] = None

    @property
    def exhausted(self) -> bool:
        return self.cursor is None
