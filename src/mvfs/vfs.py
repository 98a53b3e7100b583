"""VirtualFS: POSIX-like semantics over a StorageBackend.

Stateless with respect to callers: every method takes the caller's
session id and an optional store name, validates its arguments before
touching storage, resolves the namespace and then delegates.

Per path, a node is absent, a file or a directory. Files and directories
never change kind in place; move relocates a node (and its subtree)
without changing its kind.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from mvfs import paths
from mvfs.errors import (
    AlreadyExistsError,
    InvalidArgumentError,
    IsDirectoryError,
    NotDirectoryError,
    NotFoundError,
)
from mvfs.globbing import compile_glob, glob_to_like
from mvfs.models import DIRECTORY, FILE, LsEntry, StatResult

if TYPE_CHECKING:
    from mvfs.models import GrepMatch
    from mvfs.storage.base import StorageBackend

logger = logging.getLogger("mvfs.vfs")

# glob matches in-process over every file path; refuse beyond this many
MAX_GLOB_PATHS = 10_000


class VirtualFS:
    """Filesystem operations scoped to a session or a named store."""

    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend

    def _ns(self, session_id: str, store: str | None) -> str:
        return self.backend.resolve_namespace(session_id, store)

    def _ensure_parents(self, ns: str, path: str) -> bool:
        """Create missing ancestors of path. Returns True if any was created.

        Fails with NotDirectoryError when an ancestor is a file.
        """
        created = False
        for ancestor in paths.ancestors(path):
            if self.backend.insert_dir(ns, ancestor):
                created = True
                continue
            if ancestor == paths.ROOT:
                continue
            node = self.backend.get_node(ns, ancestor)
            if node is not None and node.is_file:
                raise NotDirectoryError(f"Not a directory: {ancestor}")
        return created

    # ------------------------------------------------------------------
    # Read-only
    # ------------------------------------------------------------------

    def stat(self, session_id: str, path: str, store: str | None = None) -> StatResult:
        p = paths.validate(path)
        ns = self._ns(session_id, store)
        node = self.backend.get_node(ns, p)
        if node is None:
            return StatResult(exists=False)
        if node.is_file:
            return StatResult(exists=True, type=FILE, size=len(node.content or ""))
        return StatResult(exists=True, type=DIRECTORY, children=self.backend.count_children(ns, p))

    def read(self, session_id: str, path: str, store: str | None = None) -> str:
        p = paths.validate(path)
        ns = self._ns(session_id, store)
        node = self.backend.get_node(ns, p)
        if node is None:
            raise NotFoundError(f"No such file: {p}")
        if node.is_dir:
            raise IsDirectoryError(f"Is a directory: {p}")
        return node.content or ""

    def ls(self, session_id: str, path: str, store: str | None = None) -> list[LsEntry]:
        """Immediate children, directories first, then by name."""
        p = paths.validate(path)
        ns = self._ns(session_id, store)
        node = self.backend.get_node(ns, p)
        if node is None:
            raise NotFoundError(f"No such directory: {p}")
        if not node.is_dir:
            raise NotDirectoryError(f"Not a directory: {p}")
        entries = [LsEntry(name=paths.basename(c.path), type=c.node_type) for c in self.backend.list_children(ns, p)]
        entries.sort(key=lambda e: (e.type != DIRECTORY, e.name))
        return entries

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def write(self, session_id: str, path: str, content: str, store: str | None = None) -> bool:
        """Replace the file's content. Returns True if parent directories were created."""
        p = paths.validate(path)
        if p == paths.ROOT:
            raise InvalidArgumentError("Cannot write to root directory")
        ns = self._ns(session_id, store)
        existing = self.backend.get_node(ns, p)
        if existing is not None and existing.is_dir:
            raise IsDirectoryError(f"Is a directory: {p}")
        created_parents = self._ensure_parents(ns, p)
        self.backend.upsert_file(ns, p, content)
        return created_parents

    def append(self, session_id: str, path: str, content: str, store: str | None = None) -> None:
        p = paths.validate(path)
        if p == paths.ROOT:
            raise InvalidArgumentError("Cannot append to root directory")
        ns = self._ns(session_id, store)
        existing = self.backend.get_node(ns, p)
        if existing is not None and existing.is_dir:
            raise IsDirectoryError(f"Is a directory: {p}")
        self._ensure_parents(ns, p)
        self.backend.append_file(ns, p, content)

    def mkdir(self, session_id: str, path: str, store: str | None = None) -> bool:
        """mkdir -p. Returns True if the directory already existed."""
        p = paths.validate(path)
        if p == paths.ROOT:
            return True
        ns = self._ns(session_id, store)
        existing = self.backend.get_node(ns, p)
        if existing is not None and existing.is_file:
            raise AlreadyExistsError(f"File exists at path: {p}")
        self._ensure_parents(ns, p)
        self.backend.insert_dir(ns, p)
        return existing is not None

    def rm(self, session_id: str, path: str, store: str | None = None) -> int:
        """rm -rf. Returns the number of nodes deleted."""
        p = paths.validate(path)
        if p == paths.ROOT:
            raise InvalidArgumentError("Cannot remove root directory")
        ns = self._ns(session_id, store)
        if self.backend.get_node(ns, p) is None:
            raise NotFoundError(f"No such file or directory: {p}")
        deleted = self.backend.delete_node(ns, p)
        logger.debug("rm %s in %s: %d node(s)", p, ns, deleted)
        return deleted

    def move(self, session_id: str, source: str, destination: str, store: str | None = None) -> None:
        src = paths.validate(source)
        dest = paths.validate(destination)
        if src == paths.ROOT:
            raise InvalidArgumentError("Cannot move root directory")
        if dest == paths.ROOT:
            raise InvalidArgumentError("Cannot move to root directory")
        if paths.is_descendant(dest, src):
            raise InvalidArgumentError(f"Cannot move a directory into itself: {src} -> {dest}")

        ns = self._ns(session_id, store)
        if self.backend.get_node(ns, src) is None:
            raise NotFoundError(f"No such file or directory: {src}")
        if self.backend.get_node(ns, dest) is not None:
            raise AlreadyExistsError(f"Destination already exists: {dest}")
        self._ensure_parents(ns, dest)
        self.backend.move_node(ns, src, dest)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def glob(self, session_id: str, pattern: str, store: str | None = None) -> list[str]:
        """File paths matching a glob pattern, sorted."""
        if not isinstance(pattern, str) or not pattern:
            raise InvalidArgumentError("Glob pattern must be a non-empty string")
        ns = self._ns(session_id, store)
        all_paths = self.backend.all_file_paths(ns)
        if len(all_paths) > MAX_GLOB_PATHS:
            raise InvalidArgumentError(
                f"Too many files ({len(all_paths)}) to glob; maximum is {MAX_GLOB_PATHS}. "
                "Use grep with path_filter to narrow your search."
            )
        regex = compile_glob(pattern)
        return [p for p in all_paths if regex.fullmatch(p.lstrip(paths.SEP))]

    def grep(
        self,
        session_id: str,
        pattern: str,
        path_filter: str | None = None,
        store: str | None = None,
    ) -> list[GrepMatch]:
        """Lines matching a regular expression, ordered by path then line number."""
        try:
            re.compile(pattern)
        except (re.error, TypeError) as exc:
            raise InvalidArgumentError(f"Invalid regex pattern: {pattern}") from exc
        ns = self._ns(session_id, store)
        like = glob_to_like(path_filter) if path_filter else None
        return self.backend.grep_content(ns, pattern, like)

    def list_stores(self) -> list[str]:
        return self.backend.list_stores()
