"""Stdio MCP server for mvfs.

Tools:
    read(path, store?)                  → {content, size}
    write(path, content, store?)        → {path, size, created_parents}
    append(path, content, store?)       → {path, appended_bytes}
    stat(path, store?)                  → {exists, type?, size?, children?}
    ls(path, store?)                    → {entries: [{name, type}]}
    mkdir(path, store?)                 → {path, already_existed}
    rm(path, store?)                    → {path, deleted}
    move(source, destination, store?)   → {source, destination}
    glob(pattern, store?)               → {files, count}
    grep(pattern, path_filter?, store?) → {matches: [{path, lineNumber, line}], count}
    list_stores()                       → {stores, count}

Session ID:
    One namespace per server process: VFS_SESSION_ID / [session] id from
    config, otherwise a random UUID. Passing `store` targets a persistent
    named store shared across sessions instead.

Protocol: JSON-RPC 2.0 over stdin/stdout (Model Context Protocol).
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import uuid
from typing import TYPE_CHECKING, Any

from mvfs.errors import VfsError
from mvfs.vfs import VirtualFS

if TYPE_CHECKING:
    from pathlib import Path

    from mvfs.storage.base import StorageBackend

_VERSION = "1.0.0"

logger = logging.getLogger("mvfs.mcp")

_STORE_PARAM = {
    "type": "string",
    "description": "Named persistent store for cross-session access. Omit to use the session's own namespace.",
}


def _path_tool(name: str, description: str, path_help: str, extra: dict[str, Any] | None = None) -> dict[str, Any]:
    properties: dict[str, Any] = {"path": {"type": "string", "description": path_help}}
    properties.update(extra or {})
    properties["store"] = _STORE_PARAM
    return {
        "name": name,
        "description": description,
        "inputSchema": {
            "type": "object",
            "properties": properties,
            "required": ["path", *(extra or {})],
        },
    }


def _tool_defs() -> list[dict[str, Any]]:
    return [
        _path_tool(
            "read",
            "Read the contents of a file. Returns the file content and its size. "
            "Errors: ENOENT if the file does not exist, EISDIR if the path is a directory.",
            "Absolute path to the file (e.g. /src/index.ts)",
        ),
        _path_tool(
            "write",
            "Write content to a file, creating it if it doesn't exist. "
            "Parent directories are created automatically (like mkdir -p). "
            "Overwrites existing file content entirely. "
            "Errors: EISDIR if the path is an existing directory, EINVAL if writing to root.",
            "Absolute path to the file (e.g. /notes/todo.md)",
            {"content": {"type": "string", "description": "Full content to write to the file"}},
        ),
        _path_tool(
            "append",
            "Append content to the end of a file. Creates the file if it doesn't exist. "
            "Parent directories are created automatically. "
            "Errors: EISDIR if the path is an existing directory, EINVAL if appending to root.",
            "Absolute path to the file to append to",
            {"content": {"type": "string", "description": "Content to append to the end of the file"}},
        ),
        _path_tool(
            "stat",
            "Check whether a path exists and get metadata about it: type, size for files, "
            "children count for directories. Never errors for missing paths.",
            "Absolute path to check",
        ),
        _path_tool(
            "ls",
            "List the contents of a directory, directories first, then alphabetically. "
            "Errors: ENOENT if the directory does not exist, ENOTDIR if the path is a file.",
            "Absolute path to the directory to list (e.g. / or /src)",
        ),
        _path_tool(
            "mkdir",
            "Create a directory and any missing parents (mkdir -p). Idempotent. "
            "Errors: EEXIST if a file already exists at the path.",
            "Absolute path of the directory to create (e.g. /src/utils)",
        ),
        _path_tool(
            "rm",
            "Remove a file or directory recursively (like rm -rf). Returns the number of nodes deleted. "
            "Errors: ENOENT if the path does not exist, EINVAL if attempting to remove root.",
            "Absolute path to remove",
        ),
        {
            "name": "move",
            "description": (
                "Move or rename a file or directory together with all descendants. "
                "Parent directories at the destination are created automatically. "
                "Errors: ENOENT if source doesn't exist, EEXIST if destination exists, "
                "EINVAL if moving root or moving a directory into itself."
            ),
            "inputSchema": {
                "type": "object",
                "properties": {
                    "source": {"type": "string", "description": "Absolute path of the file or directory to move"},
                    "destination": {"type": "string", "description": "Absolute path of the new location"},
                    "store": _STORE_PARAM,
                },
                "required": ["source", "destination"],
            },
        },
        {
            "name": "glob",
            "description": (
                "Find files matching a glob pattern. Supports wildcards (*.ts), "
                "recursive matching (**/*.md) and brace expansion ({py,json}). Only matches files."
            ),
            "inputSchema": {
                "type": "object",
                "properties": {
                    "pattern": {"type": "string", "description": "Glob pattern (e.g. **/*.ts, /src/**/*.{js,ts})"},
                    "store": _STORE_PARAM,
                },
                "required": ["pattern"],
            },
        },
        {
            "name": "grep",
            "description": (
                "Search file contents with a regular expression. Returns matching lines "
                "with file path and line number. Optionally limit the files searched with a path glob."
            ),
            "inputSchema": {
                "type": "object",
                "properties": {
                    "pattern": {"type": "string", "description": "Regular expression (e.g. TODO|FIXME)"},
                    "path_filter": {"type": "string", "description": "Glob limiting which files are searched (e.g. /src/**)"},
                    "store": _STORE_PARAM,
                },
                "required": ["pattern"],
            },
        },
        {
            "name": "list_stores",
            "description": "List all named persistent stores (cross-session namespaces).",
            "inputSchema": {"type": "object", "properties": {}},
        },
    ]


class VfsServer:
    def __init__(self, backend: StorageBackend, session_id: str | None = None) -> None:
        self.vfs = VirtualFS(backend)
        self.session_id = session_id or str(uuid.uuid4())

    def _call_read(self, args: dict[str, Any]) -> dict[str, Any]:
        content = self.vfs.read(self.session_id, args["path"], args.get("store"))
        return {"content": content, "size": len(content)}

    def _call_write(self, args: dict[str, Any]) -> dict[str, Any]:
        content = args["content"]
        created = self.vfs.write(self.session_id, args["path"], content, args.get("store"))
        return {"path": args["path"], "size": len(content), "created_parents": created}

    def _call_append(self, args: dict[str, Any]) -> dict[str, Any]:
        content = args["content"]
        self.vfs.append(self.session_id, args["path"], content, args.get("store"))
        return {"path": args["path"], "appended_bytes": len(content)}

    def _call_stat(self, args: dict[str, Any]) -> dict[str, Any]:
        return self.vfs.stat(self.session_id, args["path"], args.get("store")).to_dict()

    def _call_ls(self, args: dict[str, Any]) -> dict[str, Any]:
        entries = self.vfs.ls(self.session_id, args["path"], args.get("store"))
        return {"entries": [e.to_dict() for e in entries]}

    def _call_mkdir(self, args: dict[str, Any]) -> dict[str, Any]:
        existed = self.vfs.mkdir(self.session_id, args["path"], args.get("store"))
        return {"path": args["path"], "already_existed": existed}

    def _call_rm(self, args: dict[str, Any]) -> dict[str, Any]:
        deleted = self.vfs.rm(self.session_id, args["path"], args.get("store"))
        return {"path": args["path"], "deleted": deleted}

    def _call_move(self, args: dict[str, Any]) -> dict[str, Any]:
        self.vfs.move(self.session_id, args["source"], args["destination"], args.get("store"))
        return {"source": args["source"], "destination": args["destination"]}

    def _call_glob(self, args: dict[str, Any]) -> dict[str, Any]:
        files = self.vfs.glob(self.session_id, args["pattern"], args.get("store"))
        return {"files": files, "count": len(files)}

    def _call_grep(self, args: dict[str, Any]) -> dict[str, Any]:
        matches = self.vfs.grep(self.session_id, args["pattern"], args.get("path_filter"), args.get("store"))
        return {"matches": [m.to_dict() for m in matches], "count": len(matches)}

    def _call_list_stores(self, args: dict[str, Any]) -> dict[str, Any]:
        stores = self.vfs.list_stores()
        return {"stores": stores, "count": len(stores)}

    def call_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Run a tool and return its MCP result. VfsError becomes an isError result."""
        dispatch = {
            "read": self._call_read,
            "write": self._call_write,
            "append": self._call_append,
            "stat": self._call_stat,
            "ls": self._call_ls,
            "mkdir": self._call_mkdir,
            "rm": self._call_rm,
            "move": self._call_move,
            "glob": self._call_glob,
            "grep": self._call_grep,
            "list_stores": self._call_list_stores,
        }
        if name not in dispatch:
            msg = f"Unknown tool: {name}"
            raise ValueError(msg)
        try:
            data = dispatch[name](arguments)
        except VfsError as exc:
            return {"content": [{"type": "text", "text": f"{exc.code}: {exc}"}], "isError": True}
        except KeyError as exc:
            return {"content": [{"type": "text", "text": f"EINVAL: missing argument {exc}"}], "isError": True}
        return {"content": [{"type": "text", "text": json.dumps(data)}], "isError": False}

    def handle(self, msg: dict[str, Any]) -> dict[str, Any] | None:
        """Answer one JSON-RPC message; None for notifications."""
        method = msg.get("method", "")
        msg_id = msg.get("id")

        if method == "initialize":
            return {
                "jsonrpc": "2.0",
                "id": msg_id,
                "result": {
                    "protocolVersion": "2024-11-05",
                    "capabilities": {"tools": {}},
                    "serverInfo": {"name": "mvfs", "version": _VERSION},
                },
            }
        if method == "notifications/initialized":
            return None
        if method == "tools/list":
            return {"jsonrpc": "2.0", "id": msg_id, "result": {"tools": _tool_defs()}}
        if method == "tools/call":
            params = msg.get("params", {})
            tool_name = params.get("name", "")
            arguments = params.get("arguments") or {}
            try:
                result = self.call_tool(tool_name, arguments)
            except ValueError as exc:
                return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": -32602, "message": str(exc)}}
            except Exception as exc:
                logger.exception("tool %s failed", tool_name)
                return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": -32603, "message": f"Internal error: {exc}"}}
            return {"jsonrpc": "2.0", "id": msg_id, "result": result}
        if msg_id is not None:
            return {
                "jsonrpc": "2.0",
                "id": msg_id,
                "error": {"code": -32601, "message": f"Method not found: {method}"},
            }
        return None


async def _run_server(config_root: Path | None = None) -> None:
    from mvfs.config import load_config
    from mvfs.storage import create_backend

    cfg = load_config(config_root)
    logging.basicConfig(
        level=getattr(logging, cfg.logging.level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    backend = create_backend(cfg.database)
    server = VfsServer(backend, cfg.session.id or None)
    logger.info("session %s, db %s", server.session_id, cfg.database.path)

    reader = asyncio.StreamReader()
    loop = asyncio.get_running_loop()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)

    writer_transport, writer_protocol = await loop.connect_write_pipe(
        asyncio.BaseProtocol, sys.stdout.buffer
    )

    def write_json(obj: Any) -> None:
        line = json.dumps(obj) + "\n"
        writer_transport.write(line.encode())

    try:
        while True:
            try:
                line = await reader.readline()
            except (asyncio.IncompleteReadError, EOFError):
                break
            if not line:
                break
            try:
                msg = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("ignoring malformed message")
                continue
            response = server.handle(msg)
            if response is not None:
                write_json(response)
    finally:
        backend.close()


def run_server(config_root: Path | None = None) -> None:
    """Entry point for `mvfs serve`."""
    asyncio.run(_run_server(config_root))
