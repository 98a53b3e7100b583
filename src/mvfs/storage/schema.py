"""DDL for the node store, kept as strings so schema init needs no files.

SCHEMA_SQL       tables + prefix index (idempotent)
ISOLATION_SQL    optional namespace isolation policy (idempotent)

The isolation policy relies on vfs_current_namespace(), a SQL function
registered on every connection by mvfs.db. It returns the namespace bound
to that connection, or NULL when none is bound. A row is visible and
writable when it belongs to the bound namespace or to a persistent store,
so an unbound connection only reaches persistent stores.
"""

SCHEMA_SQL = """
-- Namespaces: ephemeral sessions and persistent named stores
CREATE TABLE IF NOT EXISTS vfs_sessions (
    id TEXT PRIMARY KEY,
    is_persistent INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

-- Filesystem nodes (files + directories), keyed by materialized path
CREATE TABLE IF NOT EXISTS vfs_nodes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id TEXT NOT NULL REFERENCES vfs_sessions(id) ON DELETE CASCADE,
    path TEXT NOT NULL,
    node_type TEXT NOT NULL CHECK (node_type IN ('file', 'directory')),
    content TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (session_id, path)
);

-- Range scans over path prefixes (children, subtree delete/move)
CREATE INDEX IF NOT EXISTS idx_vfs_nodes_path_prefix
    ON vfs_nodes (session_id, path);

CREATE INDEX IF NOT EXISTS idx_vfs_nodes_files
    ON vfs_nodes (session_id, node_type, path);
"""


def _allowed(col: str) -> str:
    # COALESCE: comparing against an unbound (NULL) namespace must be false, not NULL
    return (
        f"(COALESCE({col} = vfs_current_namespace(), 0)"
        f" OR {col} IN (SELECT id FROM vfs_sessions WHERE is_persistent = 1))"
    )


ISOLATION_SQL = f"""
CREATE VIEW IF NOT EXISTS vfs_nodes_visible AS
    SELECT * FROM vfs_nodes
    WHERE {_allowed("session_id")};

CREATE TRIGGER IF NOT EXISTS vfs_sessions_isolation_insert
BEFORE INSERT ON vfs_sessions
WHEN NOT (COALESCE(NEW.id = vfs_current_namespace(), 0) OR NEW.is_persistent = 1)
BEGIN
    SELECT RAISE(ABORT, 'namespace isolation: session row outside bound namespace');
END;

CREATE TRIGGER IF NOT EXISTS vfs_nodes_isolation_insert
BEFORE INSERT ON vfs_nodes
WHEN NOT {_allowed("NEW.session_id")}
BEGIN
    SELECT RAISE(ABORT, 'namespace isolation: insert outside bound namespace');
END;

CREATE TRIGGER IF NOT EXISTS vfs_nodes_isolation_update
BEFORE UPDATE ON vfs_nodes
WHEN NOT {_allowed("OLD.session_id")} OR NOT {_allowed("NEW.session_id")}
BEGIN
    SELECT RAISE(ABORT, 'namespace isolation: update outside bound namespace');
END;

CREATE TRIGGER IF NOT EXISTS vfs_nodes_isolation_delete
BEFORE DELETE ON vfs_nodes
WHEN NOT {_allowed("OLD.session_id")}
BEGIN
    SELECT RAISE(ABORT, 'namespace isolation: delete outside bound namespace');
END;
"""
