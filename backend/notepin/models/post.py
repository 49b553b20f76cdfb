"""
Notepin — Post SQLAlchemy Models
=================================

What:  ORM models for the `posts` and `post_images` tables.
Who:   Used by SqlPostStore for CRUD and by Alembic for schema management.

Table Design:
    - posts.id: INTEGER AUTOINCREMENT, so ids are never reused after delete
    - posts.created_at: UTC timestamp, refreshed on every edit
    - post_images: one row per attachment, `position` keeps upload order;
      rows go away with their post (ON DELETE CASCADE + delete-orphan)

    Index on created_at DESC serves the only list query (newest first).
"""

from datetime import datetime, timezone
from typing import List

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notepin.database import Base


class Post(Base):
    """
    A single note, optionally with attached images.

    Lifecycle:
        1. Inserted together with its images by SqlPostStore.create()
        2. content + created_at rewritten by SqlPostStore.update()
        3. Deleted by SqlPostStore.delete(); image rows cascade
    """

    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default=text("''"),
        comment="Post text, trimmed; empty only when images are attached",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="Creation time, overwritten on every edit (UTC)",
    )

    images: Mapped[List["PostImage"]] = relationship(
        back_populates="post",
        order_by="PostImage.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_posts_created_at", created_at.desc()),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, images={len(self.images)}, created_at='{self.created_at}')>"


class PostImage(Base):
    """An attachment of a post: public URL plus on-disk path."""

    __tablename__ = "post_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # 0-based upload order, also display order
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    url: Mapped[str] = mapped_column(String(512), nullable=False)
    path: Mapped[str] = mapped_column(String(1024), nullable=False)

    post: Mapped[Post] = relationship(back_populates="images")

    def __repr__(self) -> str:
        return f"<PostImage(post_id={self.post_id}, position={self.position}, url='{self.url}')>"
