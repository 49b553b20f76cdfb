"""
Notepin — Render Layer
=======================

What:  View models and HTML for the feed: post cards, time labels, in-place
       edit sessions, the delete confirmation modal and the image lightbox.
How:   Plain objects that a UI shell (or the server's feed page) reads.
       Nothing here talks to the network; the FeedController drives it.

Time labels:
    Same local calendar day      → "today HH:MM"
    Previous local calendar day  → "yesterday HH:MM"
    Anything else                → "YYYY-MM-DD HH:MM"

    The comparison is by calendar date in the viewer's timezone, not by
    elapsed hours: 00:10 today and 23:50 last night are a day apart.
"""

import html
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Union


Timestamp = Union[str, datetime, None]


# ══════════════════════════════════════════════════════════════════════════
# Time Formatting
# ══════════════════════════════════════════════════════════════════════════

def parse_timestamp(ts: Timestamp) -> Optional[datetime]:
    """ISO 8601 string or datetime → aware datetime. Naive values are UTC."""
    if ts is None:
        return None
    if isinstance(ts, datetime):
        parsed = ts
    else:
        text = str(ts).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_time(
    ts: Timestamp,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> str:
    """
    Relative time label for a post.

    Args:
        ts:  The post's created_at (string from the API or datetime)
        now: Reference instant; defaults to the current time
        tz:  Viewer's timezone; defaults to the system local timezone

    Returns: The label, or "" when ts cannot be parsed.
    """
    moment = parse_timestamp(ts)
    if moment is None:
        return ""

    reference = parse_timestamp(now) or datetime.now(timezone.utc)
    local = moment.astimezone(tz)
    today = reference.astimezone(tz).date()
    clock = local.strftime("%H:%M")

    days = (today - local.date()).days
    if days == 0:
        return f"today {clock}"
    if days == 1:
        return f"yesterday {clock}"
    return local.strftime("%Y-%m-%d %H:%M")


# ══════════════════════════════════════════════════════════════════════════
# View Models
# ══════════════════════════════════════════════════════════════════════════

@dataclass
class PostCard:
    """
    One post as the feed shows it.

    `editing` is set while an EditSession is open for the card; `leaving`
    while its exit animation runs before the delete call.
    """

    id: int
    content: str
    created_at: Timestamp
    images: List[str] = field(default_factory=list)
    editing: bool = False
    leaving: bool = False

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PostCard":
        return cls(
            id=int(data["id"]),
            content=data.get("content") or "",
            created_at=data.get("created_at"),
            images=list(data.get("images") or []),
        )

    def time_label(self, now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> str:
        return format_time(self.created_at, now=now, tz=tz)


class EditSession:
    """
    In-place edit of one card.

    The draft starts as the card's current content. cancel() returns the
    original so the display can be restored exactly as it was.
    """

    def __init__(self, post_id: int, original: str):
        self.post_id = post_id
        self.original = original
        self.draft = original

    def validate(self) -> Optional[str]:
        """Trimmed draft, or None when it is empty."""
        text = self.draft.strip()
        return text or None

    def cancel(self) -> str:
        self.draft = self.original
        return self.original


class DeleteConfirmation:
    """Confirmation modal; holds at most one post id awaiting a yes/no."""

    def __init__(self):
        self.pending_id: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.pending_id is not None

    def open(self, post_id: int) -> None:
        self.pending_id = post_id

    def confirm(self) -> Optional[int]:
        post_id, self.pending_id = self.pending_id, None
        return post_id

    def cancel(self) -> None:
        self.pending_id = None


class Lightbox:
    """Enlarged single-image view."""

    def __init__(self):
        self.url: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.url is not None

    def open(self, url: str) -> None:
        self.url = url

    def close(self) -> None:
        self.url = None


# ══════════════════════════════════════════════════════════════════════════
# HTML
# ══════════════════════════════════════════════════════════════════════════

def render_card_html(
    card: PostCard,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> str:
    """One <article> for a post; content and urls are HTML-escaped."""
    classes = ["post-card"]
    if card.leaving:
        classes.append("leaving")

    parts = [f'<article class="{" ".join(classes)}" data-id="{card.id}">']
    parts.append(
        '<header class="post-meta">'
        f'<time datetime="{html.escape(str(card.created_at or ""))}">'
        f"{html.escape(card.time_label(now=now, tz=tz))}</time>"
        "</header>"
    )
    if card.content:
        parts.append(f'<p class="post-text">{html.escape(card.content)}</p>')
    if card.images:
        parts.append('<div class="post-images">')
        for url in card.images:
            src = html.escape(url, quote=True)
            parts.append(f'<a href="{src}"><img src="{src}" alt="" loading="lazy"></a>')
        parts.append("</div>")
    parts.append("</article>")
    return "".join(parts)


def render_feed_html(
    cards: Iterable[PostCard],
    stylesheet: Optional[str] = None,
    title: str = "Notepin",
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> str:
    """A complete HTML page listing the cards in the order given."""
    body = "\n".join(render_card_html(card, now=now, tz=tz) for card in cards)
    if not body:
        body = '<p class="empty">No posts yet.</p>'

    head = [
        '<meta charset="utf-8">',
        '<meta name="viewport" content="width=device-width, initial-scale=1">',
        f"<title>{html.escape(title)}</title>",
    ]
    if stylesheet:
        head.append(f'<link rel="stylesheet" href="{html.escape(stylesheet, quote=True)}">')

    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        f"<head>{''.join(head)}</head>\n"
        f'<body><main class="feed">\n{body}\n</main></body>\n'
        "</html>\n"
    )
