"""
Notepin — Custom Exception Hierarchy
=====================================

What:  Application-specific exceptions for each error scenario.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) turn them into
       JSON error responses with the matching HTTP status code.
Who:   Raised by stores and services; caught by the global handlers.

Exception Hierarchy:
    NotepinError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    └── StorageError             → 500 Internal Server Error
        ├── DatabaseError        → 500 (SQL backend)
        └── FileStorageError     → 500 (JSON snapshot, upload writes)

File-removal failures during delete are never raised; UploadService logs
and swallows them.
"""

from typing import Any, Dict, Optional


class NotepinError(Exception):
    """
    Base exception for all Notepin application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NotepinError):
    """
    Raised when client input fails a business rule.

    When:    Empty post, content over the length limit, too many images,
             unsupported or oversized upload.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "A post needs text or at least one image",
            "details": {"field": "content"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(NotepinError):
    """
    Raised when a requested resource does not exist.

    When:    PUT/DELETE /api/posts/{id} with an unknown id, or a request for
             an upload that is not on disk.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class StorageError(NotepinError):
    """
    Raised when the persistence layer fails (I/O or database).

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; details such as
    file paths or SQL errors stay in `context` and the server log.
    """

    def __init__(
        self,
        message: str = "A storage error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(StorageError):
    """
    Raised when a query, insert, update or delete fails in the SQL store.

    When:    Connection lost mid-query, locked SQLite file, constraint violation.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(StorageError):
    """
    Raised when file system operations fail.

    When:    Writing an upload, reading or rewriting the JSON snapshot.
             Disk full, permission denied, corrupt snapshot.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
