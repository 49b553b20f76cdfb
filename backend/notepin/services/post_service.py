"""
Notepin — Post Service (Business Logic)
========================================

What:  Post rules and the create/edit/delete workflows.
How:   Composes an injected PostStore with the UploadService.
Who:   Called by the route handlers and the HTML feed page.

Create Flow (POST /api/posts):
    ┌──────────┐    ┌─────────────┐    ┌─────────────┐    ┌──────────┐
    │  Route   │───▶│  Validate   │───▶│  Store each │───▶│  Insert  │
    │ (JSON or │    │ text/count  │    │  image      │    │  (store) │
    │  multi)  │    └─────────────┘    └─────────────┘    └──────────┘

    If an image write or the insert fails, every image already written for
    this request is removed before the error propagates.

Delete Flow (DELETE /api/posts/{id}):
    store.delete() → response → reclaim_images() in the background.
    File removal failures are logged only.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from notepin.config import Settings, settings as default_settings
from notepin.exceptions import ValidationError
from notepin.services.upload_service import UploadService
from notepin.stores.base import ImageRef, PostRecord, PostStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncomingImage:
    """An image received with a create request, not yet written to disk."""

    filename: str
    content: bytes


class PostService:
    """
    Business logic layer for post operations.

    Args:
        store:    Any PostStore backend
        uploads:  UploadService bound to the upload directory
        settings: Source of max_content_length / max_images
    """

    def __init__(
        self,
        store: PostStore,
        uploads: UploadService,
        settings: Optional[Settings] = None,
    ):
        cfg = settings or default_settings
        self.store = store
        self.uploads = uploads
        self.max_content_length = cfg.max_content_length
        self.max_images = cfg.max_images

    def _check_length(self, content: str) -> None:
        if len(content) > self.max_content_length:
            raise ValidationError(
                message=(
                    f"Content is too long ({len(content)} characters). "
                    f"The limit is {self.max_content_length}; split it into two posts."
                ),
                field="content",
                context={"length": len(content), "max_length": self.max_content_length},
            )

    def check_image_count(self, count: int) -> None:
        """Reject more than max_images attachments as a whole."""
        if count > self.max_images:
            raise ValidationError(
                message=f"A post can have at most {self.max_images} images ({count} sent).",
                field="images",
                context={"count": count, "max_images": self.max_images},
            )

    async def list_posts(self) -> List[PostRecord]:
        return await self.store.list()

    async def create_post(
        self,
        content: Optional[str],
        images: Sequence[IncomingImage] = (),
    ) -> PostRecord:
        """
        Validate, store the images in order, then insert the post.

        Raises:
            ValidationError: empty post, text over the limit, too many images,
                             or an image the UploadService rejects
            StorageError:    an image write or the insert failed
        """
        trimmed = (content or "").strip()
        self._check_length(trimmed)

        self.check_image_count(len(images))

        if not trimmed and not images:
            raise ValidationError(
                message="A post needs text or at least one image",
                field="content",
            )

        stored: List[ImageRef] = []
        try:
            for image in images:
                stored.append(await self.uploads.store(image.content, image.filename))
            post = await self.store.create(trimmed, stored)
        except Exception:
            if stored:
                logger.warning("Create failed, removing %d stored upload(s)", len(stored))
                await self.uploads.remove_all(ref.path for ref in stored)
            raise

        logger.info("Post %s created with %d image(s)", post.id, len(post.images))
        return post

    async def update_post(self, post_id: int, content: Optional[str]) -> PostRecord:
        """
        Replace a post's text and refresh its timestamp.

        Raises:
            ValidationError: trimmed text empty or over the limit
            NotFoundError:   unknown id
        """
        trimmed = (content or "").strip()
        if not trimmed:
            raise ValidationError(message="Content cannot be empty", field="content")
        self._check_length(trimmed)

        post = await self.store.update(post_id, trimmed)
        logger.info("Post %s updated", post.id)
        return post

    async def delete_post(self, post_id: int) -> PostRecord:
        """
        Remove a post and return it; its files are reclaimed separately.

        Raises:
            NotFoundError: unknown id
        """
        post = await self.store.delete(post_id)
        logger.info("Post %s deleted (%d image(s) to reclaim)", post.id, len(post.images))
        return post

    async def reclaim_images(self, post: PostRecord) -> None:
        """Best-effort removal of the files behind a deleted post."""
        await self.uploads.remove_all(post.image_paths)
