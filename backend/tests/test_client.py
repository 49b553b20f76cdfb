"""
Notepin — Client Tests
=======================

What:  PostsClient and FeedController driven against the real app.
How:   httpx.AsyncClient over ASGITransport into create_app() with a
       MemoryPostStore; failures are injected with unittest.mock or an
       httpx.MockTransport that refuses to connect.
"""

from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

from notepin.client.api import ApiError, PostsClient
from notepin.client.config import ClientSettings
from notepin.client.controller import FeedController
from notepin.client.images import PendingImage
from notepin.client.pin_gate import PinStatus
from notepin.client.session import PUBLISH_BUTTON, ClientSession, save_button
from notepin.exceptions import DatabaseError
from notepin.stores.memory import MemoryPostStore

CODE = "1018520"


@pytest.fixture
def memory_app(test_settings):
    from notepin.main import create_app

    return create_app(settings=test_settings, store=MemoryPostStore())


@pytest_asyncio.fixture
async def api(memory_app):
    transport = httpx.ASGITransport(app=memory_app)
    client = PostsClient(client=httpx.AsyncClient(transport=transport, base_url="http://test"))
    yield client
    await client.aclose()


@pytest.fixture
def client_settings():
    return ClientSettings(pin_code=CODE, delete_exit_delay=0)


@pytest.fixture
def controller(api, client_settings):
    return FeedController(api, ClientSession(client_settings), client_settings)


async def unlock(controller):
    """Verify the session by publishing once."""
    controller.session.composer_text = "unlock"
    await controller.publish()
    await controller.submit_pin(CODE)


class TestPostsClient:

    @pytest.mark.asyncio
    async def test_crud_round(self, api):
        assert await api.list_posts() == []

        created = await api.create_post("  hello ")
        assert created["content"] == "hello"

        updated = await api.update_post(created["id"], "hi")
        assert updated["content"] == "hi"
        assert [p["id"] for p in await api.list_posts()] == [created["id"]]

        assert await api.delete_post(created["id"]) is True
        assert await api.list_posts() == []

    @pytest.mark.asyncio
    async def test_create_with_images_uses_multipart(self, api):
        images = [PendingImage("a.png", b"AAA"), PendingImage("b.jpg", b"BBB")]
        created = await api.create_post("", images)
        assert created["content"] == ""
        assert [url.rsplit(".", 1)[1] for url in created["images"]] == ["png", "jpg"]

    @pytest.mark.asyncio
    async def test_server_message_becomes_api_error(self, api):
        with pytest.raises(ApiError) as info:
            await api.create_post("   ")
        assert info.value.status_code == 400
        assert "text or at least one image" in info.value.message

    @pytest.mark.asyncio
    async def test_delete_unknown_raises(self, api):
        with pytest.raises(ApiError) as info:
            await api.delete_post(424242)
        assert info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = PostsClient(
            client=httpx.AsyncClient(transport=httpx.MockTransport(refuse), base_url="http://test")
        )
        async with client:
            with pytest.raises(ApiError) as info:
                await client.list_posts()
        assert info.value.status_code is None


class TestPublish:

    @pytest.mark.asyncio
    async def test_publish_waits_for_pin(self, controller):
        session = controller.session
        session.composer_text = "  first post "
        controller.add_image("shot.png", b"PNG")

        assert await controller.publish() is False
        assert session.pin_gate.overlay_open
        assert await controller.api.list_posts() == []

        result = await controller.submit_pin(CODE)

        assert result.accepted
        assert [card.content for card in session.cards] == ["first post"]
        assert len(session.cards[0].images) == 1
        assert session.composer_text == ""
        assert len(session.images) == 0
        assert not session.controls.is_disabled(PUBLISH_BUTTON)

    @pytest.mark.asyncio
    async def test_second_publish_skips_pin(self, controller):
        await unlock(controller)
        controller.session.composer_text = "second"
        assert await controller.publish() is True
        assert [c.content for c in controller.session.cards] == ["second", "unlock"]

    @pytest.mark.asyncio
    async def test_wrong_pin_publishes_nothing(self, controller):
        session = controller.session
        session.composer_text = "draft"
        await controller.publish()

        result = await controller.submit_pin("7777777")

        assert result.status is PinStatus.REJECTED
        assert session.pin_gate.error
        assert session.composer_text == "draft"
        assert await controller.api.list_posts() == []

    @pytest.mark.asyncio
    async def test_cancel_pin_keeps_draft(self, controller):
        session = controller.session
        session.composer_text = "draft"
        await controller.publish()

        controller.cancel_pin()
        await controller.submit_pin(CODE)

        assert not session.pin_gate.overlay_open
        assert session.composer_text == "draft"
        assert await controller.api.list_posts() == []

    @pytest.mark.asyncio
    async def test_empty_composer_not_sent(self, controller):
        assert await controller.publish() is False
        assert controller.session.notices
        assert not controller.session.pin_gate.overlay_open

    @pytest.mark.asyncio
    async def test_failure_preserves_input(self, controller, memory_app):
        await unlock(controller)
        memory_app.state.post_service.store.create = AsyncMock(side_effect=DatabaseError(message="down"))
        session = controller.session
        session.pop_notices()
        session.composer_text = "important"
        controller.add_image("a.png", b"A")

        assert await controller.publish() is False

        assert session.composer_text == "important"
        assert len(session.images) == 1
        assert len(session.notices) == 1
        assert session.notices[0].startswith("Could not publish")
        assert not session.controls.is_disabled(PUBLISH_BUTTON)

    @pytest.mark.asyncio
    async def test_control_disabled_while_in_flight(self, client_settings):
        session = ClientSession(client_settings)
        seen = []

        async def create_post(content, images):
            seen.append(session.controls.is_disabled(PUBLISH_BUTTON))
            return {"id": 1}

        api = AsyncMock()
        api.create_post = AsyncMock(side_effect=create_post)
        api.list_posts = AsyncMock(return_value=[])
        controller = FeedController(api, session, client_settings)

        session.composer_text = "x"
        await controller.publish()
        await controller.submit_pin(CODE)

        assert seen == [True]
        assert not session.controls.is_disabled(PUBLISH_BUTTON)

    @pytest.mark.asyncio
    async def test_tenth_image_refused(self, controller):
        for i in range(9):
            assert controller.add_image(f"{i}.png", b"x")
        assert controller.add_image("10.png", b"x") is False
        assert len(controller.session.images) == 9
        assert "at most 9 images" in controller.session.notices[-1]

    def test_remove_image(self, controller):
        controller.add_image("a.png", b"x")
        assert controller.remove_image(0)
        assert not controller.remove_image(0)


class TestEdit:

    @pytest.mark.asyncio
    async def test_edit_requires_pin_then_saves(self, controller):
        post = await controller.api.create_post("before")
        await controller.refresh()
        session = controller.session

        assert await controller.request_edit(post["id"]) is False
        await controller.submit_pin(CODE)

        edit = session.edits[post["id"]]
        assert edit.draft == "before"
        assert session.card(post["id"]).editing

        edit.draft = "  after  "
        assert await controller.save_edit(post["id"]) is True

        card = session.card(post["id"])
        assert card.content == "after"
        assert not card.editing
        assert post["id"] not in session.edits
        assert not session.controls.is_disabled(save_button(post["id"]))

    @pytest.mark.asyncio
    async def test_empty_edit_rejected_and_kept_open(self, controller):
        await unlock(controller)
        post_id = controller.session.cards[0].id
        await controller.request_edit(post_id)
        controller.session.edits[post_id].draft = "   "

        assert await controller.save_edit(post_id) is False

        assert post_id in controller.session.edits
        assert controller.session.notices[-1] == "Content cannot be empty"
        assert (await controller.api.list_posts())[0]["content"] == "unlock"

    @pytest.mark.asyncio
    async def test_cancel_edit_restores(self, controller):
        await unlock(controller)
        card = controller.session.cards[0]
        await controller.request_edit(card.id)
        controller.session.edits[card.id].draft = "changed"

        controller.cancel_edit(card.id)

        assert not card.editing
        assert card.content == "unlock"
        assert controller.session.edits == {}

    @pytest.mark.asyncio
    async def test_failed_save_keeps_draft(self, controller):
        await unlock(controller)
        card = controller.session.cards[0]
        await controller.request_edit(card.id)
        controller.session.edits[card.id].draft = "new text"
        await controller.api.delete_post(card.id)

        assert await controller.save_edit(card.id) is False

        assert controller.session.edits[card.id].draft == "new text"
        assert controller.session.notices[-1].startswith("Could not save changes")


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_flow(self, controller):
        await unlock(controller)
        card = controller.session.cards[0]

        assert await controller.request_delete(card.id) is True
        assert controller.session.confirm.pending_id == card.id

        assert await controller.confirm_delete() is True

        assert controller.session.cards == []
        assert await controller.api.list_posts() == []

    @pytest.mark.asyncio
    async def test_delete_needs_pin(self, controller):
        post = await controller.api.create_post("x")
        await controller.refresh()

        await controller.request_delete(post["id"])
        assert not controller.session.confirm.is_open

        await controller.submit_pin(CODE)
        assert controller.session.confirm.pending_id == post["id"]

    @pytest.mark.asyncio
    async def test_cancel_delete(self, controller):
        await unlock(controller)
        card = controller.session.cards[0]
        await controller.request_delete(card.id)

        controller.cancel_delete()

        assert await controller.confirm_delete() is False
        assert len(await controller.api.list_posts()) == 1

    @pytest.mark.asyncio
    async def test_failed_delete_restores_card(self, controller):
        await unlock(controller)
        card = controller.session.cards[0]
        await controller.request_delete(card.id)
        await controller.api.delete_post(card.id)

        assert await controller.confirm_delete() is False

        assert not card.leaving
        assert controller.session.notices[-1].startswith("Could not delete")


class TestOverlays:

    @pytest.mark.asyncio
    async def test_escape_closes_topmost_first(self, controller):
        controller.session.composer_text = "x"
        await controller.publish()
        controller.open_image("/uploads/a.jpg")

        controller.escape()
        assert not controller.session.lightbox.is_open
        assert controller.session.pin_gate.overlay_open

        controller.escape()
        assert not controller.session.pin_gate.overlay_open

    def test_lightbox(self, controller):
        controller.open_image("/uploads/a.jpg")
        assert controller.session.lightbox.url == "/uploads/a.jpg"
        controller.close_image()
        assert not controller.session.lightbox.is_open

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_cards(self, controller):
        await unlock(controller)
        before = list(controller.session.cards)
        controller.api.list_posts = AsyncMock(side_effect=ApiError("offline"))

        assert await controller.refresh() is False

        assert controller.session.cards == before
        assert controller.session.notices[-1] == "Could not load posts: offline"
