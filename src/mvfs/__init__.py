"""Namespace-isolated virtual filesystem backed by SQLite.

Layout:
    vfs_sessions      one row per namespace (ephemeral session or persistent store)
    vfs_nodes         one row per file/directory, keyed by (namespace, absolute path)

Usage:
    backend = create_backend(load_config().database)
    fs = VirtualFS(backend)
    fs.write("session-1", "/notes/todo.md", "- ship it")
    fs.read("session-1", "/notes/todo.md")
    fs.ls("session-1", "/", store="shared")     # persistent store instead of session
"""

from mvfs.config import DatabaseConfig, VfsConfig, init_config, load_config
from mvfs.errors import (
    AlreadyExistsError,
    InvalidArgumentError,
    InvalidPathError,
    IsDirectoryError,
    NotDirectoryError,
    NotFoundError,
    VfsError,
)
from mvfs.models import GrepMatch, LsEntry, StatResult, VfsNode
from mvfs.storage import SQLiteBackend, StorageBackend, create_backend
from mvfs.vfs import VirtualFS

__all__ = [
    "AlreadyExistsError",
    "DatabaseConfig",
    "GrepMatch",
    "InvalidArgumentError",
    "InvalidPathError",
    "IsDirectoryError",
    "LsEntry",
    "NotDirectoryError",
    "NotFoundError",
    "SQLiteBackend",
    "StatResult",
    "StorageBackend",
    "VfsConfig",
    "VfsError",
    "VfsNode",
    "VirtualFS",
    "create_backend",
    "init_config",
    "load_config",
]
