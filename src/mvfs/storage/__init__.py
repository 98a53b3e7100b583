"""Storage backends for the virtual filesystem."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mvfs.storage.base import StorageBackend
from mvfs.storage.sqlite import SQLiteBackend

if TYPE_CHECKING:
    from mvfs.config import DatabaseConfig

__all__ = ["SQLiteBackend", "StorageBackend", "create_backend"]


def create_backend(cfg: DatabaseConfig) -> SQLiteBackend:
    """Build the backend for cfg, initializing the schema when cfg.auto_init is set."""
    backend = SQLiteBackend(cfg)
    if cfg.auto_init:
        backend.init_schema()
    return backend
