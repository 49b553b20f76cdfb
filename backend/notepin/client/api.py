"""
Notepin — Client Data Layer
============================

What:  The four HTTP calls the client makes, with one error type.
How:   httpx.AsyncClient against the Notepin API. Any transport failure or
       non-2xx response becomes an ApiError; callers never see httpx
       exceptions. Posts are returned as the plain JSON dicts the API sends.

No retries and no client-side timeout: a request either completes, fails,
or waits on the server.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from notepin.client.config import ClientSettings
from notepin.client.images import PendingImage

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A failed API call. status_code is None for transport failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class PostsClient:
    """
    Async client for /api/posts.

    Args:
        base_url: API origin, e.g. http://localhost:3000
        client:   Pre-built httpx.AsyncClient (tests pass one bound to an
                  ASGITransport); its base_url is used as-is
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if client is None:
            client = httpx.AsyncClient(
                base_url=base_url or ClientSettings().base_url,
                timeout=None,
            )
        self._client = client

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "PostsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, str(e))
            raise ApiError(f"Could not reach the server: {e}") from e

        if response.is_error:
            message = f"Request failed with status {response.status_code}"
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("message"):
                message = body["message"]
            logger.error("%s %s -> %d: %s", method, path, response.status_code, message)
            raise ApiError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise ApiError("Server sent an unreadable response", response.status_code) from e

    async def list_posts(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/posts")

    async def create_post(
        self,
        content: str,
        images: Sequence[PendingImage] = (),
    ) -> Dict[str, Any]:
        """JSON body for text-only posts, multipart when images are attached."""
        if not images:
            return await self._request("POST", "/api/posts", json={"content": content})

        files = [
            ("images", (image.filename, image.content, image.content_type))
            for image in images
        ]
        return await self._request(
            "POST",
            "/api/posts",
            data={"content": content},
            files=files,
        )

    async def update_post(self, post_id: int, content: str) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/posts/{post_id}", json={"content": content})

    async def delete_post(self, post_id: int) -> bool:
        body = await self._request("DELETE", f"/api/posts/{post_id}")
        return bool(isinstance(body, dict) and body.get("success"))
