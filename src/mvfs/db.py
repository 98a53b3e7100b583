"""DB connection: short-lived sqlite3 connections bound to a namespace."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


def get_conn(db_path: Path, namespace: str | None = None, timeout: float = 5.0) -> sqlite3.Connection:
    """Open a connection to the node store.

    Enables WAL mode and foreign key enforcement (namespace deletes cascade
    to nodes), makes LIKE case-sensitive and registers
    vfs_current_namespace(), which returns the namespace bound to this
    connection.

    Binding happens here, before the first statement runs, so the isolation
    triggers see it on every write issued through this connection.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), timeout=timeout)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute("PRAGMA case_sensitive_like=ON")
    conn.execute("PRAGMA trusted_schema=ON")
    conn.create_function("vfs_current_namespace", 0, lambda: namespace)
    return conn
