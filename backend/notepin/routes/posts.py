"""
Notepin — Posts Route Handlers
===============================

What:  The CRUD API under /api/posts.
How:   Reads the request (JSON or multipart), delegates to PostService,
       maps the PostRecord to the wire shape.
Who:   Called by the client data layer (`notepin.client.api.PostsClient`).

Endpoints:
    GET    /api/posts        → 200 [Post, ...] newest first
    POST   /api/posts        → 201 Post   (JSON {content} or multipart)
    PUT    /api/posts/{id}   → 200 Post
    DELETE /api/posts/{id}   → 200 {"success": true} | 404 {"success": false}
"""

import logging
from typing import List, Tuple

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile

from notepin.dependencies import get_post_service
from notepin.exceptions import NotFoundError, ValidationError
from notepin.middleware.request_id import current_request_id
from notepin.schemas.post import (
    DeleteResponse,
    ErrorResponse,
    PostCreate,
    PostResponse,
    PostUpdate,
)
from notepin.services.post_service import IncomingImage, PostService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Posts"])


async def read_multipart(
    request: Request,
    service: PostService,
) -> Tuple[str, List[IncomingImage]]:
    """
    Pull the `content` field and every non-empty `images` part from a
    multipart body, keeping the order the parts arrived in.

    The part count, each extension and each size are checked before any
    file is read into memory, so an oversized request is turned away while
    its parts are still spooled on disk.
    """
    images: List[IncomingImage] = []
    async with request.form() as form:
        raw_content = form.get("content")
        content = raw_content if isinstance(raw_content, str) else ""

        # Browsers send an empty, nameless part for an untouched file input
        parts = [
            part
            for part in form.getlist("images")
            if isinstance(part, UploadFile) and (part.filename or part.size)
        ]
        service.check_image_count(len(parts))
        for part in parts:
            service.uploads.validate_extension(part.filename or "")
            if part.size is not None:
                service.uploads.validate_size(part.size)

        for part in parts:
            data = await part.read()
            images.append(IncomingImage(filename=part.filename or "", content=data))
    return content, images


async def read_json_content(request: Request) -> str:
    body = await request.body()
    if not body.strip():
        return ""
    try:
        return PostCreate.model_validate_json(body).content
    except PydanticValidationError:
        raise ValidationError(
            message='Request body must be JSON like {"content": "..."}',
            field="content",
        )


@router.get(
    "/posts",
    response_model=List[PostResponse],
    responses={500: {"description": "Storage error", "model": ErrorResponse}},
    summary="List all posts, newest first",
)
async def list_posts(
    service: PostService = Depends(get_post_service),
) -> List[PostResponse]:
    posts = await service.list_posts()
    return [PostResponse.from_record(post) for post in posts]


@router.post(
    "/posts",
    status_code=201,
    response_model=PostResponse,
    responses={
        400: {"description": "Empty post, text too long, or bad images", "model": ErrorResponse},
        500: {"description": "Storage error", "model": ErrorResponse},
    },
    summary="Create a post",
    description=(
        "Accepts either a JSON body {\"content\": \"...\"} or multipart/form-data with a "
        "`content` field and up to 9 `images` files. Text may be empty when at least one "
        "image is attached."
    ),
)
async def create_post(
    request: Request,
    service: PostService = Depends(get_post_service),
) -> PostResponse:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        content, images = await read_multipart(request, service)
    else:
        content, images = await read_json_content(request), []

    logger.info("Create request: %d chars, %d image(s)", len(content), len(images))
    post = await service.create_post(content, images)
    return PostResponse.from_record(post)


@router.put(
    "/posts/{post_id}",
    response_model=PostResponse,
    responses={
        400: {"description": "Empty or too long content", "model": ErrorResponse},
        404: {"description": "Unknown post", "model": ErrorResponse},
    },
    summary="Edit a post's text",
    description="Replaces the text and refreshes created_at. Images are never changed.",
)
async def update_post(
    post_id: int,
    payload: PostUpdate,
    service: PostService = Depends(get_post_service),
) -> PostResponse:
    post = await service.update_post(post_id, payload.content)
    return PostResponse.from_record(post)


@router.delete(
    "/posts/{post_id}",
    response_model=DeleteResponse,
    responses={404: {"description": "Unknown post", "model": ErrorResponse}},
    summary="Delete a post and its images",
)
async def delete_post(
    post_id: int,
    background_tasks: BackgroundTasks,
    service: PostService = Depends(get_post_service),
):
    try:
        post = await service.delete_post(post_id)
    except NotFoundError as exc:
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "not_found",
                "message": exc.message,
                "request_id": current_request_id(),
            },
        )

    # Files go after the response; removal failures are logged, never returned
    if post.images:
        background_tasks.add_task(service.reclaim_images, post)
    return DeleteResponse(success=True)
