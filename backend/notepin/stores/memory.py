"""
Notepin — In-Memory Post Store
===============================

What:  PostStore backed by a plain dict. Everything is lost on restart.
Who:   Tests, demos, and STORAGE_BACKEND=memory.
"""

import logging
from itertools import count
from typing import Dict, List, Sequence

from notepin.exceptions import NotFoundError
from notepin.stores.base import (
    ImageRef,
    PostRecord,
    PostStore,
    check_edit_body,
    check_post_body,
    newest_first,
    next_timestamp,
)

logger = logging.getLogger(__name__)


class MemoryPostStore(PostStore):
    """Posts live in a dict keyed by id; ids come from a counter starting at 1."""

    backend_name = "memory"

    def __init__(self) -> None:
        self._posts: Dict[int, PostRecord] = {}
        self._ids = count(1)

    async def list(self) -> List[PostRecord]:
        return newest_first(self._posts.values())

    async def get(self, post_id: int) -> PostRecord:
        try:
            return self._posts[post_id]
        except KeyError:
            raise NotFoundError(resource="post", resource_id=post_id) from None

    async def create(self, content: str, images: Sequence[ImageRef] = ()) -> PostRecord:
        trimmed = check_post_body(content, images)
        post = PostRecord(
            id=next(self._ids),
            content=trimmed,
            created_at=next_timestamp(),
            images=tuple(images),
        )
        self._posts[post.id] = post
        logger.debug("Post %d created in memory (%d images)", post.id, len(post.images))
        return post

    async def update(self, post_id: int, content: str) -> PostRecord:
        current = await self.get(post_id)
        trimmed = check_edit_body(content)
        updated = PostRecord(
            id=current.id,
            content=trimmed,
            created_at=next_timestamp(current.created_at),
            images=current.images,
        )
        self._posts[post_id] = updated
        return updated

    async def delete(self, post_id: int) -> PostRecord:
        post = self._posts.pop(post_id, None)
        if post is None:
            raise NotFoundError(resource="post", resource_id=post_id)
        return post
