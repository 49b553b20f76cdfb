"""
Notepin — Post Store Package
=============================

What:  Interchangeable persistence backends behind one PostStore interface.

Store Inventory:
    - base.py:       PostStore (abstract), PostRecord, ImageRef, shared rules
    - sql.py:        SqlPostStore       (STORAGE_BACKEND=database)
    - json_file.py:  JsonFilePostStore  (STORAGE_BACKEND=json, default)
    - memory.py:     MemoryPostStore    (STORAGE_BACKEND=memory)

Swapping the backend is a configuration change only; no caller imports a
concrete store.
"""

from notepin.config import Settings
from notepin.stores.base import ImageRef, PostRecord, PostStore


def build_post_store(settings: Settings) -> PostStore:
    """Instantiate the backend named by `settings.storage_backend`."""
    backend = settings.storage_backend
    if backend == "database":
        from notepin.stores.sql import SqlPostStore

        return SqlPostStore(
            settings.resolved_database_url,
            echo=settings.log_level == "DEBUG",
        )
    if backend == "json":
        from notepin.stores.json_file import JsonFilePostStore

        return JsonFilePostStore(settings.posts_file)
    if backend == "memory":
        from notepin.stores.memory import MemoryPostStore

        return MemoryPostStore()
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = ["ImageRef", "PostRecord", "PostStore", "build_post_store"]
