from __future__ import annotations

from sqlalchemy import BigInteger, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from omnifeed.core.db import Base

class FeedItemRecord(Base):
    __tablename__ = "feed_items"
    __table_args__ = (
        UniqueConstraint("feed_url", "link", name="uq_feed_items_feed_url_link"),
        Index("ix_feed_items_feed_url", "feed_url"),
        Index("ix_feed_items_published", "published"),
        Index("ix_feed_items_id", "id"),
        # never reuse ids, the pagination tie-break depends on it
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    feed_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # UTC epoch milliseconds
    published: Mapped[int] = mapped_column(BigInteger, nullable=False)
