"""
Notepin — Feed Controller
==========================

What:  The client's event handlers. Each public method is one user gesture
       (publish, type a PIN digit, save an edit, confirm a delete, ...).
How:   Guarded gestures go through the PIN gate first; network calls go
       through PostsClient; results land in ClientSession for the shell to
       draw.

Flow for a guarded gesture:
    request_*/publish ──▶ PinGate.request()
                              │ verified              │ not yet
                              ▼                       ▼
                         execute(action)        overlay opens, action parked
                                                      │ submit_pin(7 digits ok)
                                                      ▼
                                                 execute(action)

Failure rules:
    - every failed call is logged and leaves a notice in session.notices
    - the user's unsent text, pending images and edit drafts stay put
    - the control that started a call is disabled while it runs and is
      re-enabled whatever the outcome
"""

import asyncio
import logging
from typing import Optional

from notepin.client.api import ApiError, PostsClient
from notepin.client.config import ClientSettings
from notepin.client.images import ImageLimitReached
from notepin.client.pin_gate import ActionKind, GuardedAction, PinResult
from notepin.client.render import EditSession, PostCard
from notepin.client.session import (
    DELETE_BUTTON,
    FEED,
    PUBLISH_BUTTON,
    ClientSession,
    save_button,
)

logger = logging.getLogger(__name__)


class FeedController:
    """
    Drives one ClientSession against the API.

    Args:
        api:      PostsClient bound to the server
        session:  State to operate on; a fresh one is built when omitted
        settings: Client limits, PIN and the delete exit delay
    """

    def __init__(
        self,
        api: PostsClient,
        session: Optional[ClientSession] = None,
        settings: Optional[ClientSettings] = None,
    ):
        self.settings = settings or ClientSettings()
        self.api = api
        self.session = session or ClientSession(self.settings)

    # ══════════════════════════════════════════════════════════════════════
    # Feed
    # ══════════════════════════════════════════════════════════════════════

    async def refresh(self) -> bool:
        """Reload the feed. Open edit sessions survive for posts still listed."""
        session = self.session
        with session.controls.hold(FEED):
            try:
                posts = await self.api.list_posts()
            except ApiError as e:
                self._fail("Could not load posts", e)
                return False

        cards = [PostCard.from_api(post) for post in posts]
        listed = {card.id for card in cards}
        for post_id in list(session.edits):
            if post_id not in listed:
                del session.edits[post_id]
        for card in cards:
            card.editing = card.id in session.edits
        session.cards = cards
        return True

    # ══════════════════════════════════════════════════════════════════════
    # PIN Gate
    # ══════════════════════════════════════════════════════════════════════

    async def guard(self, action: GuardedAction) -> bool:
        """Run `action` now if the session is verified, else park it."""
        ready = self.session.pin_gate.request(action)
        if ready is None:
            return False
        return await self.execute(ready)

    async def submit_pin(self, value: str) -> PinResult:
        """Set the PIN input's value; a correct code runs the parked action."""
        result = self.session.pin_gate.enter(value)
        if result.accepted and result.action is not None:
            await self.execute(result.action)
        return result

    async def press_pin(self, key: str) -> PinResult:
        return await self.submit_pin(self.session.pin_gate.buffer + key)

    def cancel_pin(self) -> None:
        self.session.pin_gate.cancel()

    def escape(self) -> None:
        """Escape closes the topmost overlay: lightbox, PIN input, then the delete modal."""
        session = self.session
        if session.lightbox.is_open:
            session.lightbox.close()
        elif session.pin_gate.overlay_open:
            session.pin_gate.cancel()
        elif session.confirm.is_open:
            session.confirm.cancel()

    async def execute(self, action: GuardedAction) -> bool:
        if action.kind is ActionKind.PUBLISH:
            return await self._publish_now()
        if action.kind is ActionKind.EDIT:
            return self._open_edit(action.post_id)
        if action.kind is ActionKind.DELETE:
            return self._open_confirmation(action.post_id)
        raise ValueError(f"Unknown guarded action: {action.kind}")

    # ══════════════════════════════════════════════════════════════════════
    # Composer
    # ══════════════════════════════════════════════════════════════════════

    def add_image(self, filename: str, content: bytes) -> bool:
        try:
            self.session.images.add(filename, content)
        except ImageLimitReached as e:
            self.session.notify(str(e))
            return False
        return True

    def remove_image(self, index: int) -> bool:
        try:
            self.session.images.remove(index)
        except IndexError:
            return False
        return True

    def _check_composer(self) -> bool:
        session = self.session
        text = session.composer_text.strip()
        if not text and not session.images:
            session.notify("Write something or add an image first")
            return False
        if len(text) > self.settings.max_content_length:
            session.notify(
                f"Content exceeds maximum length of {self.settings.max_content_length} characters"
            )
            return False
        return True

    async def publish(self) -> bool:
        """Publish the composer; asks for the PIN first if needed."""
        if self.session.controls.is_disabled(PUBLISH_BUTTON):
            return False
        if not self._check_composer():
            return False
        return await self.guard(GuardedAction.publish())

    async def _publish_now(self) -> bool:
        session = self.session
        if session.controls.is_disabled(PUBLISH_BUTTON):
            return False

        with session.controls.hold(PUBLISH_BUTTON):
            if not self._check_composer():
                return False
            try:
                await self.api.create_post(session.composer_text.strip(), list(session.images))
            except ApiError as e:
                self._fail("Could not publish", e)
                return False

            session.composer_text = ""
            session.images.clear()

        await self.refresh()
        return True

    # ══════════════════════════════════════════════════════════════════════
    # Edit In Place
    # ══════════════════════════════════════════════════════════════════════

    async def request_edit(self, post_id: int) -> bool:
        return await self.guard(GuardedAction.edit(post_id))

    def _open_edit(self, post_id: Optional[int]) -> bool:
        card = self.session.card(post_id) if post_id is not None else None
        if card is None:
            self.session.notify("That post is no longer available")
            return False
        if post_id not in self.session.edits:
            self.session.edits[post_id] = EditSession(post_id, card.content)
        card.editing = True
        return True

    async def save_edit(self, post_id: int) -> bool:
        session = self.session
        edit = session.edits.get(post_id)
        control = save_button(post_id)
        if edit is None or session.controls.is_disabled(control):
            return False

        with session.controls.hold(control):
            text = edit.validate()
            if text is None:
                session.notify("Content cannot be empty")
                return False
            try:
                updated = await self.api.update_post(post_id, text)
            except ApiError as e:
                self._fail("Could not save changes", e)
                return False

        del session.edits[post_id]
        card = session.card(post_id)
        if card is not None:
            fresh = PostCard.from_api(updated)
            card.content = fresh.content
            card.created_at = fresh.created_at
            card.images = fresh.images
            card.editing = False
        return True

    def cancel_edit(self, post_id: int) -> None:
        edit = self.session.edits.pop(post_id, None)
        if edit is not None:
            edit.cancel()
        card = self.session.card(post_id)
        if card is not None:
            card.editing = False

    # ══════════════════════════════════════════════════════════════════════
    # Delete
    # ══════════════════════════════════════════════════════════════════════

    async def request_delete(self, post_id: int) -> bool:
        return await self.guard(GuardedAction.delete(post_id))

    def _open_confirmation(self, post_id: Optional[int]) -> bool:
        if post_id is None or self.session.card(post_id) is None:
            self.session.notify("That post is no longer available")
            return False
        self.session.confirm.open(post_id)
        return True

    def cancel_delete(self) -> None:
        self.session.confirm.cancel()

    async def confirm_delete(self) -> bool:
        """
        Yes on the delete modal.

        The card is marked as leaving and the exit delay elapses before the
        request goes out; the feed is reloaded afterwards. On failure the
        card comes back as it was.
        """
        session = self.session
        if session.controls.is_disabled(DELETE_BUTTON):
            return False
        post_id = session.confirm.confirm()
        if post_id is None:
            return False

        card = session.card(post_id)
        with session.controls.hold(DELETE_BUTTON):
            if card is not None:
                card.leaving = True
            if self.settings.delete_exit_delay:
                await asyncio.sleep(self.settings.delete_exit_delay)
            try:
                deleted = await self.api.delete_post(post_id)
            except ApiError as e:
                deleted = False
                self._fail("Could not delete", e)
            else:
                if not deleted:
                    session.notify("Could not delete: the server refused the request")

            if not deleted:
                if card is not None:
                    card.leaving = False
                return False

        session.edits.pop(post_id, None)
        await self.refresh()
        return True

    # ══════════════════════════════════════════════════════════════════════
    # Lightbox
    # ══════════════════════════════════════════════════════════════════════

    def open_image(self, url: str) -> None:
        self.session.lightbox.open(url)

    def close_image(self) -> None:
        self.session.lightbox.close()

    # ── Helpers ───────────────────────────────────────────────────────────

    def _fail(self, what: str, error: ApiError) -> None:
        logger.warning("%s: %s (status=%s)", what, error.message, error.status_code)
        self.session.notify(f"{what}: {error.message}")
