"""
Notepin — Feed Page Route
==========================

What:  GET / renders the current posts as a read-only HTML page.
How:   The same render layer the client uses (notepin.client.render)
       turns PostRecords into cards; the page links /static/style.css.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from notepin.client.render import PostCard, render_feed_html
from notepin.dependencies import get_post_service
from notepin.services.post_service import PostService

router = APIRouter(tags=["Pages"])


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def feed_page(service: PostService = Depends(get_post_service)) -> HTMLResponse:
    posts = await service.list_posts()
    cards = [
        PostCard.from_api(
            {
                "id": post.id,
                "content": post.content,
                "created_at": post.created_at,
                "images": post.image_urls,
            }
        )
        for post in posts
    ]
    return HTMLResponse(render_feed_html(cards, stylesheet="/static/style.css"))
