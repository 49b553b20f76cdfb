"""
Notepin — Post Service Unit Tests
==================================

What:  Business rules and the create/update/delete workflows.
How:   Real UploadService under tmp_path; the store is either the
       parametrized `store` fixture or a MemoryPostStore with an injected
       failure (unittest.mock).

What we test:
    ✅ trimming, length limit, content-or-images rule
    ✅ more than nine images rejected as a whole, nothing written
    ✅ images stored in upload order
    ✅ failed insert removes the files already written
    ✅ delete returns the record; reclaim removes its files
"""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from notepin.exceptions import DatabaseError, NotFoundError, ValidationError
from notepin.services.post_service import IncomingImage, PostService
from notepin.stores.memory import MemoryPostStore


def images(count, data=b"\x89PNG fake"):
    return [IncomingImage(filename=f"img{i}.png", content=data) for i in range(count)]


def stored_files(upload_service):
    return sorted(upload_service.upload_dir.iterdir())


class TestCreatePost:

    @pytest.mark.asyncio
    async def test_image_count_checked_on_its_own(self, post_service):
        post_service.check_image_count(9)
        with pytest.raises(ValidationError, match=r"at most 9 images \(10 sent\)"):
            post_service.check_image_count(10)

    @pytest.mark.asyncio
    async def test_text_post_trimmed(self, post_service):
        post = await post_service.create_post("  hello world \n")
        assert post.content == "hello world"
        assert post.images == ()

    @pytest.mark.asyncio
    async def test_images_stored_in_order(self, post_service, upload_service):
        incoming = [
            IncomingImage("first.jpg", b"1111"),
            IncomingImage("second.png", b"2222"),
            IncomingImage("third.gif", b"3333"),
        ]

        post = await post_service.create_post("trip", incoming)

        assert [Path(p).read_bytes() for p in post.image_paths] == [b"1111", b"2222", b"3333"]
        assert [Path(u).suffix for u in post.image_urls] == [".jpg", ".png", ".gif"]
        assert all(url.startswith("/uploads/") for url in post.image_urls)
        assert len(stored_files(upload_service)) == 3

    @pytest.mark.asyncio
    async def test_image_only_post(self, post_service):
        post = await post_service.create_post("", images(1))
        assert post.content == ""
        assert len(post.images) == 1

    @pytest.mark.asyncio
    async def test_empty_post_rejected(self, post_service):
        with pytest.raises(ValidationError, match="text or at least one image"):
            await post_service.create_post("   ")
        assert await post_service.list_posts() == []

    @pytest.mark.asyncio
    async def test_content_limit(self, post_service):
        await post_service.create_post("x" * 2000)
        with pytest.raises(ValidationError, match="too long"):
            await post_service.create_post("x" * 2001)

    @pytest.mark.asyncio
    async def test_limit_applies_after_trimming(self, post_service):
        post = await post_service.create_post("  " + "x" * 2000 + "  ")
        assert len(post.content) == 2000

    @pytest.mark.asyncio
    async def test_nine_images_allowed(self, post_service):
        post = await post_service.create_post("", images(9))
        assert len(post.images) == 9

    @pytest.mark.asyncio
    async def test_ten_images_rejected_without_writing(self, post_service, upload_service):
        with pytest.raises(ValidationError, match="at most 9 images"):
            await post_service.create_post("too many", images(10))
        assert stored_files(upload_service) == []
        assert await post_service.list_posts() == []

    @pytest.mark.asyncio
    async def test_bad_image_removes_earlier_uploads(self, post_service, upload_service):
        incoming = [IncomingImage("ok.jpg", b"fine"), IncomingImage("bad.exe", b"nope")]
        with pytest.raises(ValidationError):
            await post_service.create_post("x", incoming)
        assert stored_files(upload_service) == []

    @pytest.mark.asyncio
    async def test_failed_insert_removes_uploads(self, upload_service, test_settings):
        store = MemoryPostStore()
        store.create = AsyncMock(side_effect=DatabaseError(message="db down"))
        service = PostService(store, upload_service, settings=test_settings)

        with pytest.raises(DatabaseError):
            await service.create_post("x", images(3))

        assert stored_files(upload_service) == []


class TestUpdatePost:

    @pytest.mark.asyncio
    async def test_update_trims_and_keeps_images(self, post_service):
        post = await post_service.create_post("before", images(2))
        updated = await post_service.update_post(post.id, "  after ")
        assert updated.content == "after"
        assert updated.images == post.images
        assert updated.created_at > post.created_at

    @pytest.mark.asyncio
    async def test_update_empty_rejected(self, post_service):
        post = await post_service.create_post("before")
        with pytest.raises(ValidationError, match="cannot be empty"):
            await post_service.update_post(post.id, " \t ")

    @pytest.mark.asyncio
    async def test_update_too_long_rejected(self, post_service):
        post = await post_service.create_post("before")
        with pytest.raises(ValidationError, match="too long"):
            await post_service.update_post(post.id, "y" * 2001)

    @pytest.mark.asyncio
    async def test_update_unknown(self, post_service):
        with pytest.raises(NotFoundError):
            await post_service.update_post(999999, "x")


class TestDeletePost:

    @pytest.mark.asyncio
    async def test_delete_then_reclaim(self, post_service, upload_service):
        post = await post_service.create_post("bye", images(2))

        removed = await post_service.delete_post(post.id)
        assert removed.id == post.id
        assert len(stored_files(upload_service)) == 2

        await post_service.reclaim_images(removed)
        assert stored_files(upload_service) == []
        assert await post_service.list_posts() == []

    @pytest.mark.asyncio
    async def test_reclaim_tolerates_missing_files(self, post_service):
        post = await post_service.create_post("bye", images(1))
        Path(post.image_paths[0]).unlink()
        removed = await post_service.delete_post(post.id)
        await post_service.reclaim_images(removed)

    @pytest.mark.asyncio
    async def test_delete_unknown(self, post_service):
        with pytest.raises(NotFoundError):
            await post_service.delete_post(999999)
