"""StorageBackend: the persistence contract VirtualFS depends on.

All node methods operate inside one namespace (ephemeral session or
persistent store). Paths are already validated and normalized by the
caller. Absence is reported as None or 0, never as an error; storage
failures propagate unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mvfs.models import GrepMatch, VfsNode


class StorageBackend(ABC):
    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:  # noqa: B027
        """Release connections and caches. Default: nothing to release."""

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    @abstractmethod
    def ensure_session(self, session_id: str) -> None:
        """Provision an ephemeral namespace and its root directory (idempotent)."""

    @abstractmethod
    def ensure_store(self, name: str) -> None:
        """Provision a persistent namespace and its root directory (idempotent)."""

    def resolve_namespace(self, session_id: str, store: str | None = None) -> str:
        """Return the namespace an operation targets, provisioning it first.

        A named store wins over the caller's session.
        """
        if store:
            self.ensure_store(store)
            return store
        self.ensure_session(session_id)
        return session_id

    @abstractmethod
    def list_stores(self) -> list[str]:
        """All persistent namespace ids, sorted."""

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    @abstractmethod
    def get_node(self, namespace: str, path: str) -> VfsNode | None: ...

    @abstractmethod
    def count_children(self, namespace: str, dir_path: str) -> int: ...

    @abstractmethod
    def list_children(self, namespace: str, dir_path: str) -> list[VfsNode]: ...

    @abstractmethod
    def upsert_file(self, namespace: str, path: str, content: str) -> None:
        """Create the file or replace its content."""

    @abstractmethod
    def append_file(self, namespace: str, path: str, content: str) -> None:
        """Create the file with content, or concatenate to what is there."""

    @abstractmethod
    def insert_dir(self, namespace: str, path: str) -> bool:
        """Create a directory unless the path is taken. True if a row was inserted."""

    @abstractmethod
    def delete_node(self, namespace: str, path: str) -> int:
        """Delete the node and all descendants in one statement. Returns rows removed."""

    @abstractmethod
    def move_node(self, namespace: str, source: str, dest: str) -> None:
        """Re-prefix the node and all descendants from source to dest atomically."""

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    @abstractmethod
    def all_file_paths(self, namespace: str) -> list[str]:
        """Every file path (directories excluded), sorted."""

    @abstractmethod
    def grep_content(
        self, namespace: str, pattern: str, path_filter: str | None = None
    ) -> list[GrepMatch]:
        """Regex line search ordered by path then line number.

        path_filter is a LIKE pattern (escape character backslash).
        """
