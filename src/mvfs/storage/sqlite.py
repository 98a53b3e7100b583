"""SQLite implementation of StorageBackend.

One flat table of nodes keyed by (session_id, path). Tree operations are
prefix range scans over the materialized path:

    descendants of /a   →  path >= '/a/' AND path < '/a0'     ('0' follows '/')
    children of /a      →  descendants with no further '/' after the prefix
    rm -r /a            →  one DELETE over  path = '/a' OR descendants
    mv /a /b            →  one UPDATE rewriting the '/a' prefix to '/b'

With isolation enabled every connection is bound to the namespace it serves
(see mvfs.db.get_conn), reads go through the vfs_nodes_visible view and the
triggers from ISOLATION_SQL reject writes that leave the bound namespace.
"""

from __future__ import annotations

import contextlib
import logging
import re
import threading
from typing import TYPE_CHECKING

from mvfs.db import get_conn
from mvfs.models import GrepMatch, VfsNode, utcnow
from mvfs.paths import ROOT, SEP
from mvfs.storage.base import StorageBackend
from mvfs.storage.schema import ISOLATION_SQL, SCHEMA_SQL

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Iterator

    from mvfs.config import DatabaseConfig

logger = logging.getLogger("mvfs.storage")

_NODE_COLUMNS = "path, node_type, content, created_at, updated_at"


def _prefix_range(dir_path: str) -> tuple[str, str]:
    """Half-open [lo, hi) range holding every strict descendant of dir_path."""
    lo = ROOT if dir_path == ROOT else dir_path + SEP
    return lo, lo[:-1] + chr(ord(SEP) + 1)


# Constructs whose meaning differs between one line and the whole content.
_LINE_ONLY = ("\\A", "\\Z", "\\z", "(?=", "(?!", "(?<=", "(?<!")


def _content_prefilter(pattern: str) -> re.Pattern[str] | None:
    """Whole-content regex that matches whenever some line matches.

    With MULTILINE, ^ and $ hold at every line boundary, so a line match is
    also a content match. Patterns using a line-only construct get no
    prefilter and every line is scanned.
    """
    if any(token in pattern for token in _LINE_ONLY):
        return None
    return re.compile(pattern, re.MULTILINE)


class SQLiteBackend(StorageBackend):
    """Node store in a single SQLite database file."""

    def __init__(self, cfg: DatabaseConfig) -> None:
        self._cfg = cfg
        # Namespaces already provisioned by this process. Only skips
        # redundant INSERTs; a miss just re-runs the idempotent provisioning.
        self._known: set[tuple[str, bool]] = set()
        self._known_lock = threading.Lock()
        self._nodes = "vfs_nodes_visible" if cfg.isolation else "vfs_nodes"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def _connect(self, namespace: str | None = None) -> Iterator[sqlite3.Connection]:
        """One connection, one transaction: commit on success, rollback on error."""
        bound = namespace if self._cfg.isolation else None
        conn = get_conn(self._cfg.path, namespace=bound, timeout=self._cfg.timeout)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def init_schema(self, with_isolation: bool | None = None) -> None:
        """Create tables and indexes; install the isolation policy if requested.

        Safe to call repeatedly.
        """
        if with_isolation is None:
            with_isolation = self._cfg.isolation
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            if with_isolation:
                conn.executescript(ISOLATION_SQL)
        logger.info("schema ready at %s (isolation=%s)", self._cfg.path, with_isolation)

    def close(self) -> None:
        with self._known_lock:
            self._known.clear()

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    def _ensure_namespace(self, namespace: str, persistent: bool) -> None:
        key = (namespace, persistent)
        with self._known_lock:
            if key in self._known:
                return
        now = utcnow()
        with self._connect(namespace) as conn:
            cur = conn.execute(
                """INSERT INTO vfs_sessions (id, is_persistent, created_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT (id) DO NOTHING""",
                (namespace, int(persistent), now),
            )
            conn.execute(
                """INSERT INTO vfs_nodes (session_id, path, node_type, created_at, updated_at)
                   VALUES (?, ?, 'directory', ?, ?)
                   ON CONFLICT (session_id, path) DO NOTHING""",
                (namespace, ROOT, now, now),
            )
        if cur.rowcount:
            logger.info("provisioned %s %s", "store" if persistent else "session", namespace)
        with self._known_lock:
            self._known.add(key)

    def ensure_session(self, session_id: str) -> None:
        self._ensure_namespace(session_id, persistent=False)

    def ensure_store(self, name: str) -> None:
        self._ensure_namespace(name, persistent=True)

    def list_stores(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id FROM vfs_sessions WHERE is_persistent = 1 ORDER BY id"
            ).fetchall()
        return [r[0] for r in rows]

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def get_node(self, namespace: str, path: str) -> VfsNode | None:
        with self._connect(namespace) as conn:
            row = conn.execute(
                f"SELECT {_NODE_COLUMNS} FROM {self._nodes} WHERE session_id = ? AND path = ?",  # noqa: S608
                (namespace, path),
            ).fetchone()
        return VfsNode.from_row(row) if row else None

    def _children_where(self, namespace: str, dir_path: str) -> tuple[str, tuple[str, ...]]:
        lo, hi = _prefix_range(dir_path)
        where = """session_id = ?
                   AND path >= ? AND path < ?
                   AND path != ?
                   AND instr(substr(path, length(?) + 1), '/') = 0"""
        return where, (namespace, lo, hi, dir_path, lo)

    def count_children(self, namespace: str, dir_path: str) -> int:
        where, params = self._children_where(namespace, dir_path)
        with self._connect(namespace) as conn:
            row = conn.execute(f"SELECT COUNT(*) FROM {self._nodes} WHERE {where}", params).fetchone()  # noqa: S608
        return int(row[0])

    def list_children(self, namespace: str, dir_path: str) -> list[VfsNode]:
        where, params = self._children_where(namespace, dir_path)
        with self._connect(namespace) as conn:
            rows = conn.execute(
                f"SELECT {_NODE_COLUMNS} FROM {self._nodes} WHERE {where} ORDER BY path",  # noqa: S608
                params,
            ).fetchall()
        return [VfsNode.from_row(r) for r in rows]

    def upsert_file(self, namespace: str, path: str, content: str) -> None:
        now = utcnow()
        with self._connect(namespace) as conn:
            conn.execute(
                """INSERT INTO vfs_nodes (session_id, path, node_type, content, created_at, updated_at)
                   VALUES (?, ?, 'file', ?, ?, ?)
                   ON CONFLICT (session_id, path) DO UPDATE
                   SET content = excluded.content, updated_at = excluded.updated_at
                   WHERE vfs_nodes.node_type = 'file'""",
                (namespace, path, content, now, now),
            )

    def append_file(self, namespace: str, path: str, content: str) -> None:
        now = utcnow()
        with self._connect(namespace) as conn:
            conn.execute(
                """INSERT INTO vfs_nodes (session_id, path, node_type, content, created_at, updated_at)
                   VALUES (?, ?, 'file', ?, ?, ?)
                   ON CONFLICT (session_id, path) DO UPDATE
                   SET content = COALESCE(vfs_nodes.content, '') || excluded.content,
                       updated_at = excluded.updated_at
                   WHERE vfs_nodes.node_type = 'file'""",
                (namespace, path, content, now, now),
            )

    def insert_dir(self, namespace: str, path: str) -> bool:
        now = utcnow()
        with self._connect(namespace) as conn:
            cur = conn.execute(
                """INSERT INTO vfs_nodes (session_id, path, node_type, created_at, updated_at)
                   VALUES (?, ?, 'directory', ?, ?)
                   ON CONFLICT (session_id, path) DO NOTHING""",
                (namespace, path, now, now),
            )
        return cur.rowcount == 1

    def delete_node(self, namespace: str, path: str) -> int:
        lo, hi = _prefix_range(path)
        with self._connect(namespace) as conn:
            cur = conn.execute(
                """DELETE FROM vfs_nodes
                   WHERE session_id = ?
                     AND (path = ? OR (path >= ? AND path < ?))""",
                (namespace, path, lo, hi),
            )
        logger.debug("deleted %d node(s) at %s in %s", cur.rowcount, path, namespace)
        return cur.rowcount

    def move_node(self, namespace: str, source: str, dest: str) -> None:
        lo, hi = _prefix_range(source)
        with self._connect(namespace) as conn:
            cur = conn.execute(
                """UPDATE vfs_nodes
                   SET path = ? || substr(path, length(?) + 1),
                       updated_at = ?
                   WHERE session_id = ?
                     AND (path = ? OR (path >= ? AND path < ?))""",
                (dest, source, utcnow(), namespace, source, lo, hi),
            )
        logger.debug("moved %d node(s) %s -> %s in %s", cur.rowcount, source, dest, namespace)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def all_file_paths(self, namespace: str) -> list[str]:
        with self._connect(namespace) as conn:
            rows = conn.execute(
                f"SELECT path FROM {self._nodes} WHERE session_id = ? AND node_type = 'file' ORDER BY path",  # noqa: S608
                (namespace,),
            ).fetchall()
        return [r[0] for r in rows]

    def grep_content(
        self, namespace: str, pattern: str, path_filter: str | None = None
    ) -> list[GrepMatch]:
        # SQL narrows the candidate files; lines are split on \n here and
        # numbered from 1, so a trailing newline yields a final empty line.
        regex = re.compile(pattern)
        prefilter = _content_prefilter(pattern)
        params: list[str] = [namespace]
        filter_sql = ""
        if path_filter:
            filter_sql = "AND path LIKE ? ESCAPE '\\'"
            params.append(path_filter)
        sql = f"""
            SELECT path, content FROM {self._nodes}
            WHERE session_id = ?
              AND node_type = 'file'
              AND content IS NOT NULL
              {filter_sql}
            ORDER BY path
        """  # noqa: S608
        matches: list[GrepMatch] = []
        scanned = 0
        with self._connect(namespace) as conn:
            for path, content in conn.execute(sql, params):
                if prefilter is not None and prefilter.search(content) is None:
                    continue
                scanned += 1
                for n, line in enumerate(content.split("\n"), start=1):
                    if regex.search(line):
                        matches.append(GrepMatch(path=path, line_number=n, line=line))
        logger.debug("grep %r in %s: %d file(s) scanned, %d match(es)", pattern, namespace, scanned, len(matches))
        return matches
