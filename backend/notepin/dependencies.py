"""
Notepin — FastAPI Dependencies
===============================

What:  Accessors for the per-application objects built by create_app().
How:   create_app() stores the PostService and UploadService on app.state;
       route handlers receive them through Depends().

    @router.get("/posts")
    async def list_posts(service: PostService = Depends(get_post_service)):
        ...
"""

from fastapi import Request

from notepin.services.post_service import PostService
from notepin.services.upload_service import UploadService


def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service
