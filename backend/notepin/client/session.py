"""
Notepin — Client Session State
===============================

What:  Everything the client remembers between events: the PIN gate, the
       composer (text and pending images), the rendered cards, open edit
       sessions, the delete modal, the lightbox, which controls are busy
       and the notices waiting to be shown.
Who:   Owned by one FeedController; read by the UI shell to draw.
"""

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set

from notepin.client.config import ClientSettings
from notepin.client.images import PendingImageTray
from notepin.client.pin_gate import PinGate
from notepin.client.render import DeleteConfirmation, EditSession, Lightbox, PostCard

# Control names used by the controller
PUBLISH_BUTTON = "publish"
DELETE_BUTTON = "delete"
FEED = "feed"


def save_button(post_id: int) -> str:
    return f"save:{post_id}"


class Controls:
    """Tracks which controls are disabled while their request is in flight."""

    def __init__(self):
        self._busy: Set[str] = set()

    def is_disabled(self, name: str) -> bool:
        return name in self._busy

    @contextmanager
    def hold(self, name: str) -> Iterator[None]:
        """Disable `name` for the duration of the block, whatever the outcome."""
        self._busy.add(name)
        try:
            yield
        finally:
            self._busy.discard(name)


class ClientSession:
    def __init__(self, settings: Optional[ClientSettings] = None):
        cfg = settings or ClientSettings()
        self.pin_gate = PinGate(cfg.pin_code)
        self.composer_text = ""
        self.images = PendingImageTray(cfg.max_images)
        self.cards: List[PostCard] = []
        self.edits: Dict[int, EditSession] = {}
        self.confirm = DeleteConfirmation()
        self.lightbox = Lightbox()
        self.controls = Controls()
        self.notices: List[str] = []

    def card(self, post_id: int) -> Optional[PostCard]:
        for card in self.cards:
            if card.id == post_id:
                return card
        return None

    def notify(self, message: str) -> None:
        self.notices.append(message)

    def pop_notices(self) -> List[str]:
        """Hand the pending notices to the shell and forget them."""
        notices, self.notices = self.notices, []
        return notices
