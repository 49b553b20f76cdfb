"""
Notepin — JSON File Post Store
===============================

What:  PostStore persisted as one JSON array snapshot on disk.
How:   The snapshot is loaded once (lazily, on first use) into memory.
       Every mutation builds the new list, rewrites the whole file, and only
       then swaps the in-memory copy, so a failed write leaves both unchanged.
       One asyncio.Lock covers each load-modify-write, so overlapping
       requests are applied one after another and never lose a post.
Who:   Default backend (STORAGE_BACKEND=json).

Snapshot Layout:
    [
      {
        "id": 1718000000123,
        "content": "hello",
        "created_at": "2024-06-10T06:13:20.123456+00:00",
        "images": [{"url": "/uploads/....jpg", "path": "/srv/uploads/....jpg"}]
      },
      ...
    ]

    Entries are written newest first, the same order list() returns.

Ids:
    Milliseconds since the epoch, bumped to last id + 1 when the clock has
    not advanced. Ids therefore keep growing across deletes and restarts.
"""

import asyncio
import json
import logging
import os
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import aiofiles

from notepin.exceptions import FileStorageError, NotFoundError
from notepin.stores.base import (
    ImageRef,
    PostRecord,
    PostStore,
    check_edit_body,
    check_post_body,
    ensure_utc,
    newest_first,
    next_timestamp,
)

logger = logging.getLogger(__name__)


def record_to_dict(post: PostRecord) -> Dict[str, Any]:
    return {
        "id": post.id,
        "content": post.content,
        "created_at": post.created_at.isoformat(),
        "images": [{"url": image.url, "path": image.path} for image in post.images],
    }


def record_from_dict(data: Dict[str, Any]) -> PostRecord:
    return PostRecord(
        id=int(data["id"]),
        content=data.get("content") or "",
        created_at=ensure_utc(datetime.fromisoformat(data["created_at"])),
        images=tuple(
            ImageRef(url=image["url"], path=image["path"])
            for image in data.get("images") or []
        ),
    )


class JsonFilePostStore(PostStore):
    """
    Snapshot-backed store.

    Args:
        path: Location of the JSON array file. Parent directories are
              created on first write.
    """

    backend_name = "json"

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._posts: Optional[List[PostRecord]] = None
        self._last_id = 0
        # Serializes load → build → write → swap across overlapping requests
        self._lock = asyncio.Lock()

    # ── Snapshot I/O ──────────────────────────────────────────────────────

    async def open(self) -> None:
        async with self._lock:
            await self._load()

    async def _load(self) -> List[PostRecord]:
        """Snapshot contents; caller holds self._lock."""
        if self._posts is not None:
            return self._posts

        if not self.path.exists():
            logger.info("No snapshot at %s, starting empty", self.path)
            self._posts = []
            return self._posts

        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                raw = await f.read()
            data = json.loads(raw) if raw.strip() else []
            if not isinstance(data, list):
                raise ValueError("snapshot root must be a JSON array")
            posts = [record_from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Failed to load snapshot %s: %s", self.path, str(e))
            raise FileStorageError(
                message="Could not read stored posts.",
                context={"path": str(self.path), "error": str(e)},
            )

        self._posts = newest_first(posts)
        self._last_id = max((p.id for p in posts), default=0)
        logger.info("Loaded %d posts from %s", len(posts), self.path)
        return self._posts

    async def _write(self, posts: List[PostRecord]) -> None:
        """Rewrite the whole snapshot via a unique temp file and an atomic replace."""
        payload = json.dumps(
            [record_to_dict(p) for p in posts],
            ensure_ascii=False,
            indent=2,
        )
        tmp_path: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
            os.close(fd)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("Failed to write snapshot %s: %s", self.path, str(e))
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise FileStorageError(
                message="Could not save posts. Please try again.",
                context={"path": str(self.path), "os_error": str(e)},
            )

    async def _commit(self, posts: List[PostRecord]) -> None:
        ordered = newest_first(posts)
        await self._write(ordered)
        self._posts = ordered

    def _next_id(self) -> int:
        candidate = int(time.time() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        return candidate

    def _find(self, posts: List[PostRecord], post_id: int) -> PostRecord:
        for post in posts:
            if post.id == post_id:
                return post
        raise NotFoundError(resource="post", resource_id=post_id)

    # ── PostStore ─────────────────────────────────────────────────────────

    async def list(self) -> List[PostRecord]:
        async with self._lock:
            posts = await self._load()
        return list(posts)

    async def get(self, post_id: int) -> PostRecord:
        async with self._lock:
            posts = await self._load()
        return self._find(posts, post_id)

    async def create(self, content: str, images: Sequence[ImageRef] = ()) -> PostRecord:
        trimmed = check_post_body(content, images)
        async with self._lock:
            posts = await self._load()
            post = PostRecord(
                id=self._next_id(),
                content=trimmed,
                created_at=next_timestamp(),
                images=tuple(images),
            )
            await self._commit([post, *posts])
            self._last_id = post.id
        logger.info("Post %d saved to snapshot (%d images)", post.id, len(post.images))
        return post

    async def update(self, post_id: int, content: str) -> PostRecord:
        async with self._lock:
            posts = await self._load()
            current = self._find(posts, post_id)
            trimmed = check_edit_body(content)
            updated = PostRecord(
                id=current.id,
                content=trimmed,
                created_at=next_timestamp(current.created_at),
                images=current.images,
            )
            await self._commit([updated if p.id == post_id else p for p in posts])
        return updated

    async def delete(self, post_id: int) -> PostRecord:
        async with self._lock:
            posts = await self._load()
            removed = self._find(posts, post_id)
            await self._commit([p for p in posts if p.id != post_id])
        return removed
