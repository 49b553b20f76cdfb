"""
Notepin — SQL Post Store
=========================

What:  PostStore backed by the `posts` / `post_images` tables.
How:   Async SQLAlchemy. Each operation opens its own session and commits
       before returning; ORM rows are mapped to PostRecord on the way out.
Who:   STORAGE_BACKEND=database. SQLite (aiosqlite) by default,
       PostgreSQL with the asyncpg driver when DATABASE_URL points there.

Query plan (list):
    SELECT ... FROM posts ORDER BY created_at DESC, id DESC
    → idx_posts_created_at; images loaded with one selectin query
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from sqlalchemy import desc, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from notepin.database import build_engine, build_session_factory, dispose_engine, init_models
from notepin.exceptions import DatabaseError, NotFoundError
from notepin.models.post import Post, PostImage
from notepin.stores.base import (
    ImageRef,
    PostRecord,
    PostStore,
    check_edit_body,
    check_post_body,
    ensure_utc,
    next_timestamp,
)

logger = logging.getLogger(__name__)


def to_record(row: Post) -> PostRecord:
    return PostRecord(
        id=row.id,
        content=row.content,
        created_at=ensure_utc(row.created_at),
        images=tuple(ImageRef(url=image.url, path=image.path) for image in row.images),
    )


class SqlPostStore(PostStore):
    """
    Table-backed store.

    Args:
        database_url: Async SQLAlchemy URL
        echo: Echo SQL statements (debug)
        engine: Pre-built engine (tests); overrides database_url
    """

    backend_name = "database"

    def __init__(
        self,
        database_url: Optional[str] = None,
        echo: bool = False,
        engine: Optional[AsyncEngine] = None,
    ) -> None:
        if engine is None:
            if not database_url:
                raise ValueError("SqlPostStore needs a database_url or an engine")
            engine = build_engine(database_url, echo=echo)
        self.engine = engine
        self._sessions = build_session_factory(engine)
        self._schema_ready = False
        self._schema_lock = asyncio.Lock()

    async def open(self) -> None:
        if self._schema_ready:
            return
        async with self._schema_lock:
            if self._schema_ready:
                return
            url = self.engine.url
            if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            try:
                await init_models(self.engine)
            except SQLAlchemyError as e:
                logger.error("Could not prepare database schema: %s", str(e))
                raise DatabaseError(
                    message="Database is not available.",
                    context={"error_type": type(e).__name__},
                )
            self._schema_ready = True

    async def close(self) -> None:
        await dispose_engine(self.engine)

    async def health_check(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning("Health check: database unreachable: %s", str(e))
            return False
        return True

    # ── PostStore ─────────────────────────────────────────────────────────

    async def list(self) -> List[PostRecord]:
        await self.open()
        try:
            async with self._sessions() as session:
                result = await session.execute(
                    select(Post).order_by(desc(Post.created_at), desc(Post.id))
                )
                return [to_record(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve posts. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get(self, post_id: int) -> PostRecord:
        await self.open()
        try:
            async with self._sessions() as session:
                row = await session.get(Post, post_id)
                if row is None:
                    raise NotFoundError(resource="post", resource_id=post_id)
                return to_record(row)
        except SQLAlchemyError as e:
            logger.error("Database error fetching post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the post. Please try again.",
                context={"post_id": post_id},
            )

    async def create(self, content: str, images: Sequence[ImageRef] = ()) -> PostRecord:
        trimmed = check_post_body(content, images)
        await self.open()
        try:
            async with self._sessions() as session:
                row = Post(content=trimmed, created_at=next_timestamp())
                row.images = [
                    PostImage(position=position, url=image.url, path=image.path)
                    for position, image in enumerate(images)
                ]
                session.add(row)
                await session.commit()
                logger.info("Post %d inserted (%d images)", row.id, len(row.images))
                return to_record(row)
        except SQLAlchemyError as e:
            logger.error("Database error inserting post: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the post. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def update(self, post_id: int, content: str) -> PostRecord:
        await self.open()
        try:
            async with self._sessions() as session:
                row = await session.get(Post, post_id)
                if row is None:
                    raise NotFoundError(resource="post", resource_id=post_id)
                row.content = check_edit_body(content)
                row.created_at = next_timestamp(row.created_at)
                await session.commit()
                return to_record(row)
        except SQLAlchemyError as e:
            logger.error("Database error updating post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not update the post. Please try again.",
                context={"post_id": post_id},
            )

    async def delete(self, post_id: int) -> PostRecord:
        await self.open()
        try:
            async with self._sessions() as session:
                row = await session.get(Post, post_id)
                if row is None:
                    raise NotFoundError(resource="post", resource_id=post_id)
                removed = to_record(row)
                await session.delete(row)
                await session.commit()
                return removed
        except SQLAlchemyError as e:
            logger.error("Database error deleting post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not delete the post. Please try again.",
                context={"post_id": post_id},
            )
