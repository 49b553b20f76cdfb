"""
Notepin — Abstract Post Store Interface
========================================

What:  The contract every persistence backend implements, plus the plain
       domain records that cross it.
How:   Concrete stores (sql, json file, memory) subclass PostStore. The
       service layer and routes only ever see PostStore and PostRecord.
Who:   Used by PostService; selected by `build_post_store()`.

Shared Rules (every backend):
    - list() is newest created_at first; equal timestamps fall back to
      id descending, so the later insert comes first.
    - create() rejects a post whose trimmed content is empty and which has
      no images.
    - update() rewrites content and refreshes created_at; images are fixed.
    - delete() returns the removed record so the caller can reclaim files.
    - No locking: two racing edits on one id are last-write-wins.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from notepin.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageRef:
    """An attachment: the public URL and the server-side storage path."""

    url: str
    path: str


@dataclass(frozen=True)
class PostRecord:
    """
    A post as the stores hand it out.

    created_at is always timezone-aware UTC and doubles as the
    last-modified time.
    """

    id: int
    content: str
    created_at: datetime
    images: Tuple[ImageRef, ...] = field(default_factory=tuple)

    @property
    def image_urls(self) -> List[str]:
        return [image.url for image in self.images]

    @property
    def image_paths(self) -> List[str]:
        return [image.path for image in self.images]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; they are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def next_timestamp(previous: Optional[datetime] = None) -> datetime:
    """
    Current UTC time, strictly later than `previous`.

    An edit must move created_at forward even when the clock has not
    ticked since the last write.
    """
    now = utc_now()
    if previous is not None:
        previous = ensure_utc(previous)
        if now <= previous:
            now = previous + timedelta(microseconds=1)
    return now


def newest_first(posts: Iterable[PostRecord]) -> List[PostRecord]:
    """Sort by created_at descending, ties by id descending."""
    return sorted(posts, key=lambda p: (p.created_at, p.id), reverse=True)


def check_post_body(content: str, images: Sequence[ImageRef] = ()) -> str:
    """
    Trim content and enforce "text or at least one image".

    Returns the trimmed content.
    Raises ValidationError when both are empty.
    """
    trimmed = (content or "").strip()
    if not trimmed and not images:
        raise ValidationError(
            message="A post needs text or at least one image",
            field="content",
        )
    return trimmed


def check_edit_body(content: str) -> str:
    """Trim edited content; edits can never leave a post empty."""
    trimmed = (content or "").strip()
    if not trimmed:
        raise ValidationError(message="Content cannot be empty", field="content")
    return trimmed


class PostStore(ABC):
    """
    Abstract interface for post persistence.

    Implementations:
        - SqlPostStore:      SQLAlchemy table (SQLite by default, PostgreSQL optional)
        - JsonFilePostStore: JSON array snapshot rewritten on every mutation
        - MemoryPostStore:   process-local list, gone on restart

    Errors:
        NotFoundError for unknown ids, ValidationError for empty bodies,
        StorageError subclasses for I/O and database failures.
    """

    #: Short name reported by the health endpoint
    backend_name: str = "abstract"

    async def open(self) -> None:
        """Prepare the backend (create tables, load snapshot). Idempotent."""

    async def close(self) -> None:
        """Release connections or handles held by the backend."""

    @abstractmethod
    async def list(self) -> List[PostRecord]:
        """All posts, newest first."""
        ...

    @abstractmethod
    async def get(self, post_id: int) -> PostRecord:
        """One post by id. Raises NotFoundError if absent."""
        ...

    @abstractmethod
    async def create(self, content: str, images: Sequence[ImageRef] = ()) -> PostRecord:
        """
        Insert a post and persist it before returning.

        Args:
            content: Post text; surrounding whitespace is trimmed
            images:  Already-stored attachments, in upload order

        Raises:
            ValidationError: trimmed content and images are both empty
        """
        ...

    @abstractmethod
    async def update(self, post_id: int, content: str) -> PostRecord:
        """
        Replace content and refresh created_at.

        Raises:
            NotFoundError: unknown id
            ValidationError: trimmed content is empty
        """
        ...

    @abstractmethod
    async def delete(self, post_id: int) -> PostRecord:
        """
        Remove a post and return the removed record.

        Raises:
            NotFoundError: unknown id
        """
        ...

    async def health_check(self) -> bool:
        """True if the backend can serve a read."""
        try:
            await self.list()
        except Exception as e:
            logger.warning("Health check: %s store unreachable: %s", self.backend_name, str(e))
            return False
        return True
