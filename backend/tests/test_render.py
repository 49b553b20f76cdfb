"""
Notepin — Render Layer Tests
=============================

What:  Time labels, card view models, modal helpers and HTML output.
How:   Fixed reference instants and explicit timezones, so results do not
       depend on the machine running the tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from notepin.client.images import ImageLimitReached, PendingImageTray
from notepin.client.render import (
    DeleteConfirmation,
    EditSession,
    Lightbox,
    PostCard,
    format_time,
    render_card_html,
    render_feed_html,
)

UTC = timezone.utc
TOKYO = timezone(timedelta(hours=9))
NOW = datetime(2024, 6, 10, 0, 30, tzinfo=UTC)


class TestFormatTime:

    def test_today(self):
        assert format_time("2024-06-10T00:05:00Z", now=NOW, tz=UTC) == "today 00:05"

    def test_yesterday_by_calendar_day(self):
        # Only 40 minutes earlier, but on the previous calendar day
        assert format_time("2024-06-09T23:50:00+00:00", now=NOW, tz=UTC) == "yesterday 23:50"

    def test_older(self):
        assert format_time("2024-06-08T23:59:00Z", now=NOW, tz=UTC) == "2024-06-08 23:59"

    def test_uses_viewer_timezone(self):
        # 2024-06-09 23:50 UTC is 2024-06-10 08:50 in UTC+9; NOW is 09:30 there
        assert format_time("2024-06-09T23:50:00Z", now=NOW, tz=TOKYO) == "today 08:50"

    def test_naive_values_are_utc(self):
        assert format_time("2024-06-10T00:05:00", now=NOW, tz=UTC) == "today 00:05"

    def test_accepts_datetime(self):
        ts = datetime(2024, 6, 9, 12, 0, tzinfo=UTC)
        assert format_time(ts, now=NOW, tz=UTC) == "yesterday 12:00"

    def test_future_dates_get_full_label(self):
        assert format_time("2024-06-12T10:00:00Z", now=NOW, tz=UTC) == "2024-06-12 10:00"

    @pytest.mark.parametrize("value", [None, "", "not a date", "2024-13-45"])
    def test_unparseable(self, value):
        assert format_time(value, now=NOW, tz=UTC) == ""


class TestViewModels:

    def test_card_from_api(self):
        card = PostCard.from_api(
            {"id": 4, "content": "hi", "created_at": "2024-06-10T00:05:00Z", "images": ["/uploads/a.jpg"]}
        )
        assert card.id == 4
        assert card.images == ["/uploads/a.jpg"]
        assert card.time_label(now=NOW, tz=UTC) == "today 00:05"
        assert not card.editing and not card.leaving

    def test_edit_session_validate_and_cancel(self):
        edit = EditSession(1, "original")
        edit.draft = "   "
        assert edit.validate() is None
        edit.draft = "  changed "
        assert edit.validate() == "changed"
        assert edit.cancel() == "original"
        assert edit.draft == "original"

    def test_delete_confirmation(self):
        modal = DeleteConfirmation()
        assert not modal.is_open
        modal.open(3)
        assert modal.is_open
        assert modal.confirm() == 3
        assert not modal.is_open
        assert modal.confirm() is None
        modal.open(4)
        modal.cancel()
        assert modal.pending_id is None

    def test_lightbox(self):
        box = Lightbox()
        box.open("/uploads/a.jpg")
        assert box.is_open and box.url == "/uploads/a.jpg"
        box.close()
        assert not box.is_open

    def test_image_tray_limit(self):
        tray = PendingImageTray(limit=9)
        for i in range(9):
            tray.add(f"{i}.png", b"x")
        with pytest.raises(ImageLimitReached):
            tray.add("extra.png", b"x")
        assert len(tray) == 9
        tray.remove(0)
        assert [image.filename for image in tray][0] == "1.png"

    def test_pending_image_preview(self):
        tray = PendingImageTray()
        image = tray.add("shot.png", b"abc")
        assert image.content_type == "image/png"
        assert image.preview_url == "data:image/png;base64,YWJj"


class TestHtml:

    def test_card_html_escapes(self):
        card = PostCard(id=1, content='<script>alert("x")</script>', created_at="2024-06-10T00:05:00Z")
        markup = render_card_html(card, now=NOW, tz=UTC)
        assert "<script>" not in markup
        assert "&lt;script&gt;" in markup
        assert "today 00:05" in markup
        assert 'data-id="1"' in markup

    def test_card_html_images_in_order(self):
        card = PostCard(id=2, content="", created_at=None, images=["/uploads/a.jpg", "/uploads/b.jpg"])
        markup = render_card_html(card)
        assert markup.index("/uploads/a.jpg") < markup.index("/uploads/b.jpg")
        assert 'class="post-text"' not in markup

    def test_feed_html(self):
        cards = [PostCard(id=i, content=f"post {i}", created_at=None) for i in (2, 1)]
        page = render_feed_html(cards, stylesheet="/static/style.css")
        assert page.startswith("<!DOCTYPE html>")
        assert '<link rel="stylesheet" href="/static/style.css">' in page
        assert page.index("post 2") < page.index("post 1")

    def test_empty_feed(self):
        assert "No posts yet." in render_feed_html([])
