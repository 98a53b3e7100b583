"""Error taxonomy shared by every layer.

Each error carries a `kind` and the matching POSIX-style `code`:

    NotFoundError          NotFound         ENOENT
    IsDirectoryError       IsDirectory      EISDIR
    NotDirectoryError      NotADirectory    ENOTDIR
    AlreadyExistsError     AlreadyExists    EEXIST
    InvalidArgumentError   InvalidArgument  EINVAL
        InvalidPathError

Storage failures outside this taxonomy (sqlite3.Error, OSError) are not
wrapped; they reach the caller as they were raised.
"""

from __future__ import annotations


class VfsError(Exception):
    """Base class for filesystem-semantics errors."""

    kind = "VfsError"
    code = "EIO"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "code": self.code, "message": self.message}


class NotFoundError(VfsError):
    kind = "NotFound"
    code = "ENOENT"


class IsDirectoryError(VfsError):
    kind = "IsDirectory"
    code = "EISDIR"


class NotDirectoryError(VfsError):
    kind = "NotADirectory"
    code = "ENOTDIR"


class AlreadyExistsError(VfsError):
    kind = "AlreadyExists"
    code = "EEXIST"


class InvalidArgumentError(VfsError):
    kind = "InvalidArgument"
    code = "EINVAL"


class InvalidPathError(InvalidArgumentError):
    """A path argument failed validation."""
