"""Data models for filesystem nodes and operation results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

NodeType = Literal["file", "directory"]

FILE: NodeType = "file"
DIRECTORY: NodeType = "directory"


def utcnow() -> str:
    """ISO-8601 UTC timestamp, the format stored in created_at/updated_at."""
    return datetime.now(UTC).isoformat()


@dataclass
class VfsNode:
    """A single row of the node table."""

    path: str
    node_type: NodeType
    content: str | None = None       # None for directories
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_file(self) -> bool:
        return self.node_type == FILE

    @property
    def is_dir(self) -> bool:
        return self.node_type == DIRECTORY

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> VfsNode:
        path, node_type, content, created_at, updated_at = row
        return cls(
            path=path,
            node_type=node_type,
            content=content,
            created_at=_parse_ts(created_at),
            updated_at=_parse_ts(updated_at),
        )


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class GrepMatch:
    """One matching line: path, 1-based line number, line text."""

    path: str
    line_number: int
    line: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "lineNumber": self.line_number, "line": self.line}


@dataclass(frozen=True)
class LsEntry:
    name: str
    type: NodeType

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type}


@dataclass(frozen=True)
class StatResult:
    exists: bool
    type: NodeType | None = None
    size: int | None = None          # files only
    children: int | None = None      # directories only

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"exists": self.exists}
        if self.type is not None:
            d["type"] = self.type
        if self.size is not None:
            d["size"] = self.size
        if self.children is not None:
            d["children"] = self.children
        return d
