from __future__ import annotations

from typing import Iterable, Optional, Sequence

from loguru import logger
from sqlalchemy import distinct, func, or_, and_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from omnifeed.core.db import Base, make_session_factory
from omnifeed.core.errors import StorageError
from omnifeed.models import FeedItem, FeedItemRecord

_DIALECT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}

def _to_item(row: FeedItemRecord) -> FeedItem:
    return FeedItem(
        id=row.id,
        feed_url=row.feed_url,
        title=row.title,
        link=row.link,
        content=row.content,
        image=row.image,
        published=row.published,
    )

class FeedStore:
    """Durable feed item table.

    Rows are deduplicated on ``(feed_url, link)``: a conflicting insert is a
    no-op and the first write wins. Reads are keyset paginated in
    ``published DESC, id DESC`` order.
    """

    def __init__(self, engine: AsyncEngine, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._engine = engine
        self._sessions = session_factory or make_session_factory(engine)
        try:
            self._insert = _DIALECT_INSERTS[engine.dialect.name]
        except KeyError:
            raise ValueError(f"unsupported database dialect: {engine.dialect.name}") from None

    async def initialize(self) -> None:
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise StorageError(f"schema creation failed: {e}") from e

    async def add_items(self, items: Iterable[FeedItem]) -> int:
        inserted = 0
        try:
            async with self._sessions() as session:
                for item in items:
                    stmt = (
                        self._insert(FeedItemRecord.__table__)
                        .values(
                            feed_url=item.feed_url,
                            title=item.title,
                            link=item.link,
                            content=item.content,
                            image=item.image,
                            published=item.published,
                        )
                        .on_conflict_do_nothing(index_elements=["feed_url", "link"])
                    )
                    res = await session.execute(stmt)
                    # One transaction per item
                    await session.commit()
                    inserted += max(res.rowcount or 0, 0)
        except SQLAlchemyError as e:
            raise StorageError(f"insert failed: {e}") from e
        return inserted

    async def get_items(
        self,
        feed_urls: Sequence[str],
        limit: int,
        last_published: Optional[int] = None,
        last_id: Optional[int] = None,
    ) -> list[FeedItem]:
        stmt = (
            select(FeedItemRecord)
            .where(FeedItemRecord.feed_url.in_(list(feed_urls)))
            .order_by(FeedItemRecord.published.desc(), FeedItemRecord.id.desc())
            .limit(limit)
        )
        if last_published is not None and last_id is not None:
            # published desc, id desc: rows after cursor => (published < p) OR (published == p AND id < id)
            stmt = stmt.where(
                or_(
                    FeedItemRecord.published < last_published,
                    and_(FeedItemRecord.published == last_published, FeedItemRecord.id < last_id),
                )
            )
        try:
            async with self._sessions() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            raise StorageError(f"page query failed: {e}") from e
        return [_to_item(r) for r in rows]

    async def has_items(self, feed_urls: Sequence[str]) -> dict[str, bool]:
        result = {url: False for url in feed_urls}
        if not result:
            return result
        stmt = select(distinct(FeedItemRecord.feed_url)).where(FeedItemRecord.feed_url.in_(list(result)))
        try:
            async with self._sessions() as session:
                for url in (await session.execute(stmt)).scalars():
                    result[url] = True
        except SQLAlchemyError as e:
            raise StorageError(f"lookup failed: {e}") from e
        return result

    async def known_feed_urls(self) -> list[str]:
        stmt = select(distinct(FeedItemRecord.feed_url)).order_by(FeedItemRecord.feed_url)
        try:
            async with self._sessions() as session:
                return list((await session.execute(stmt)).scalars().all())
        except SQLAlchemyError as e:
            raise StorageError(f"feed url scan failed: {e}") from e

    async def count_items(self, feed_urls: Optional[Sequence[str]] = None) -> int:
        stmt = select(func.count(FeedItemRecord.id))
        if feed_urls is not None:
            stmt = stmt.where(FeedItemRecord.feed_url.in_(list(feed_urls)))
        try:
            async with self._sessions() as session:
                return int((await session.execute(stmt)).scalar_one())
        except SQLAlchemyError as e:
            raise StorageError(f"count failed: {e}") from e

    async def close(self) -> None:
        logger.debug("disposing database engine")
        await self._engine.dispose()
