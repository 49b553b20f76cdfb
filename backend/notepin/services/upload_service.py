"""
Notepin — Upload Service
=========================

What:  Stores image attachments on disk and removes them again.
How:   Validates extension and size, writes the bytes under UPLOAD_DIR with
       a generated name, and returns the public URL plus the on-disk path.
Who:   Called by PostService during create (store) and after delete
       (remove, as a background task).

Naming:
    <UTC yyyymmddHHMMSSffffff>-<8 random hex chars><original extension>
    e.g. 20240610061320123456-9f2c4a1b.jpg

    The time prefix keeps a directory listing in upload order; the random
    suffix keeps two uploads in the same microsecond apart. No part of the
    client's file name other than its extension reaches the disk.

Removal is best-effort: a missing file or an OS error is logged and
swallowed so it can never fail a post deletion.
"""

import logging
import os
import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

import aiofiles

from notepin.config import Settings, settings as default_settings
from notepin.exceptions import FileStorageError, NotFoundError, ValidationError
from notepin.stores.base import ImageRef

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".heic", ".bmp"}


class UploadService:
    """
    Manages the upload directory.

    Directory Structure (flat):
        uploads/
        ├── 20240610061320123456-9f2c4a1b.jpg
        └── 20240610061320125871-03be77d2.png

    Args:
        upload_dir:  Override the configured directory (tests)
        url_prefix:  Public prefix the directory is served under
        max_file_size: Per-file byte limit
    """

    def __init__(
        self,
        upload_dir: Optional[Union[str, Path]] = None,
        url_prefix: Optional[str] = None,
        max_file_size: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        cfg = settings or default_settings
        self.upload_dir = Path(upload_dir or cfg.upload_dir).resolve()
        self.url_prefix = "/" + (url_prefix or cfg.upload_url_prefix).strip("/")
        self.max_file_size = max_file_size or cfg.max_file_size
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("UploadService initialized with upload_dir=%s", self.upload_dir)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_extension(self, filename: str) -> str:
        """
        Check the extension against the image allowlist.

        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if the extension is not allowed.
        """
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="images",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, actual_size: int) -> None:
        """Reject empty files and files over max_file_size."""
        if actual_size == 0:
            raise ValidationError(message="Uploaded image is empty.", field="images")

        if actual_size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=(
                    f"Image size ({actual_size / (1024 * 1024):.1f}MB) "
                    f"exceeds maximum of {max_mb:.0f}MB."
                ),
                field="images",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    # ── Storage ───────────────────────────────────────────────────────────

    def generate_name(self, extension: str) -> str:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")
        return f"{stamp}-{secrets.token_hex(4)}{extension}"

    def _target(self, extension: str) -> Tuple[Path, str]:
        name = self.generate_name(extension)
        path = self.upload_dir / name
        # Collisions need the same microsecond and the same 32 random bits
        while path.exists():
            name = self.generate_name(extension)
            path = self.upload_dir / name
        return path, name

    async def store(self, content: bytes, original_name: str) -> ImageRef:
        """
        Validate and write one image.

        Args:
            content:        Raw file bytes
            original_name:  Client-side file name (only the extension is kept)

        Returns:
            ImageRef(url=<prefix>/<name>, path=<absolute path>)

        Raises:
            ValidationError:  bad extension, empty or oversized file
            FileStorageError: the write failed
        """
        ext = self.validate_extension(original_name)
        self.validate_size(len(content))

        path, name = self._target(ext)
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store upload at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Upload stored: %s (%d bytes, from %s)", name, len(content), original_name)
        return ImageRef(url=f"{self.url_prefix}/{name}", path=str(path))

    async def remove(self, path: str) -> None:
        """
        Delete a stored file, best-effort.

        Never raises: a missing file is logged at debug level, any other
        failure at warning level.
        """
        try:
            target = Path(path)
            if target.exists():
                os.remove(target)
                logger.info("Removed upload: %s", target.name)
            else:
                logger.debug("Remove: upload already gone: %s", target.name)
        except Exception as e:
            logger.warning("Failed to remove upload %s: %s", path, str(e))

    async def remove_all(self, paths: Iterable[str]) -> None:
        for path in paths:
            await self.remove(path)

    def resolve(self, name: str) -> Path:
        """
        Map a public file name to its path inside upload_dir.

        Raises:
            ValidationError: the name escapes upload_dir
            NotFoundError:   no such file
        """
        full_path = (self.upload_dir / name).resolve()
        if full_path.parent != self.upload_dir:
            raise ValidationError(message="Invalid file path", field="name")
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=name)
        return full_path
