"""
Notepin — Pending Images
=========================

What:  Images the user picked for the next post but has not sent yet.
How:   Each PendingImage keeps the bytes in memory and exposes a local
       preview URL (a data: URI) so the composer can show thumbnails
       before upload. The tray enforces the per-post limit.
"""

import base64
import mimetypes
from dataclasses import dataclass
from typing import Iterator, List


class ImageLimitReached(Exception):
    """Raised when adding beyond the per-post image limit."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"A post can have at most {limit} images")


@dataclass(frozen=True)
class PendingImage:
    filename: str
    content: bytes

    @property
    def content_type(self) -> str:
        guessed, _ = mimetypes.guess_type(self.filename)
        return guessed or "application/octet-stream"

    @property
    def preview_url(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


class PendingImageTray:
    """Ordered selection of PendingImages; order is upload and display order."""

    def __init__(self, limit: int = 9):
        self.limit = limit
        self._items: List[PendingImage] = []

    def add(self, filename: str, content: bytes) -> PendingImage:
        if len(self._items) >= self.limit:
            raise ImageLimitReached(self.limit)
        image = PendingImage(filename=filename, content=content)
        self._items.append(image)
        return image

    def remove(self, index: int) -> PendingImage:
        return self._items.pop(index)

    def clear(self) -> None:
        self._items.clear()

    @property
    def full(self) -> bool:
        return len(self._items) >= self.limit

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[PendingImage]:
        return iter(list(self._items))

    def __bool__(self) -> bool:
        return bool(self._items)
