"""
Notepin — Pydantic Request/Response Schemas
============================================

What:  The API contract between the client and the backend.
How:   FastAPI validates request bodies and serializes responses with these
       models; the same models document the API in /docs.

Wire shape of a post:
    {"id": 1, "content": "hello", "created_at": "2024-06-10T06:13:20.123456Z",
     "images": ["/uploads/20240610061320123456-9f2c4a1b.jpg"]}

    On-disk paths never leave the server; only URLs are exposed.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from notepin.stores.base import PostRecord


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PostCreate(BaseModel):
    """JSON body of POST /api/posts (text-only posts)."""
    content: str = Field(default="", description="Post text; trimmed server-side")


class PostUpdate(BaseModel):
    """JSON body of PUT /api/posts/{id}."""
    content: str = Field(description="Replacement text; must not be empty after trimming")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PostResponse(BaseModel):
    """
    Full representation of a post.

    created_at is the last-modified time: edits overwrite it.
    """
    id: int = Field(description="Unique post identifier")
    content: str = Field(description="Post text")
    created_at: datetime = Field(description="Creation or last edit time (UTC ISO 8601)")
    images: List[str] = Field(default_factory=list, description="Image URLs in display order")

    @classmethod
    def from_record(cls, post: PostRecord) -> "PostResponse":
        return cls(
            id=post.id,
            content=post.content,
            created_at=post.created_at,
            images=post.image_urls,
        )


class DeleteResponse(BaseModel):
    """Body of DELETE /api/posts/{id}."""
    success: bool


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "post with ID '7' was not found",
            "request_id": "1f0c2a9e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
    success: Optional[bool] = Field(default=None, description="Set to false by DELETE failures")


class HealthResponse(BaseModel):
    """Health check response showing service and storage status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    storage_backend: str = Field(description="Configured store: database, json, memory")
    storage: str = Field(description="Store reachability: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
