"""
Notepin — Application Configuration
====================================

What:  Centralized configuration management using Pydantic Settings.
How:   Values come from environment variables (or a .env file), are
       validated on startup, and are exposed through the `settings` singleton.
Who:   Imported by the app factory, the stores and the upload service.

Every path defaults to a location relative to the process working
directory so a fresh checkout runs without any configuration.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

STORAGE_BACKENDS = {"database", "json", "memory"}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern for readability.
    """

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)

    # ── Persistence ───────────────────────────────────────────────────────
    # What: Which PostStore backend serves the API
    # Values: database (SQLAlchemy table), json (file snapshot), memory
    storage_backend: str = Field(default="json")

    # What: Directory holding the JSON snapshot and the default SQLite file
    data_dir: str = Field(default="./data")

    # What: Async SQLAlchemy URL; derived from data_dir when left empty
    # Format: sqlite+aiosqlite:///path/to.db or postgresql+asyncpg://user:pw@host/db
    database_url: Optional[str] = Field(default=None)

    # ── Uploads ───────────────────────────────────────────────────────────
    upload_dir: str = Field(default="./uploads")

    # What: Directory served at /static (stylesheet of the feed page)
    # Default: the static/ directory shipped inside the package
    public_dir: Optional[str] = Field(default=None)

    # What: Public URL prefix mapped onto upload_dir
    upload_url_prefix: str = Field(default="/uploads")

    # What: Maximum allowed size of a single image in bytes (10MB)
    max_file_size: int = Field(default=10_485_760, ge=1024, le=52_428_800)

    # ── Post Rules ────────────────────────────────────────────────────────
    max_content_length: int = Field(default=2000, ge=1)
    max_images: int = Field(default=9, ge=0)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated origins, or "*" for any
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Logging ───────────────────────────────────────────────────────────
    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        """Ensures the storage backend is one the store factory knows."""
        lower = v.lower()
        if lower not in STORAGE_BACKENDS:
            raise ValueError(
                f"Invalid storage_backend '{v}'. Must be one of: {sorted(STORAGE_BACKENDS)}"
            )
        return lower

    @field_validator("upload_url_prefix")
    @classmethod
    def validate_upload_url_prefix(cls, v: str) -> str:
        """Normalizes the prefix to a leading slash and no trailing slash."""
        return "/" + v.strip("/")

    # ── Derived Paths ─────────────────────────────────────────────────────
    @property
    def posts_file(self) -> Path:
        """Location of the JSON array snapshot used by the json backend."""
        return Path(self.data_dir) / "posts.json"

    @property
    def resolved_public_dir(self) -> Path:
        if self.public_dir:
            return Path(self.public_dir)
        return Path(__file__).resolve().parent / "static"

    @property
    def resolved_database_url(self) -> str:
        """The configured database URL, or a SQLite file inside data_dir."""
        if self.database_url:
            return self.database_url
        db_path = (Path(self.data_dir) / "notepin.db").resolve()
        return f"sqlite+aiosqlite:///{db_path}"

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Singleton instance, imported throughout the application
settings = Settings()
