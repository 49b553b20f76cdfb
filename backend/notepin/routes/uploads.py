"""
Notepin — Upload File Route
============================

What:  Serves stored images at <UPLOAD_URL_PREFIX>/<generated-name>
       (/uploads/<name> by default; the prefix is applied in create_app).
How:   UploadService.resolve() maps the name into the upload directory and
       refuses anything outside it; FileResponse streams the file with a
       media type guessed from the extension.
Who:   <img> tags built from the `images` URLs of a post.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from notepin.dependencies import get_upload_service
from notepin.schemas.post import ErrorResponse
from notepin.services.upload_service import UploadService

router = APIRouter(tags=["Uploads"])


@router.get(
    "/{name}",
    summary="Serve an uploaded image",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_upload(
    name: str,
    uploads: UploadService = Depends(get_upload_service),
) -> FileResponse:
    path = uploads.resolve(name)
    # Generated names are never reused, so the bytes behind a URL never change
    return FileResponse(
        path=str(path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
