"""Pure path helpers for the virtual filesystem.

Every path stored in the backend is absolute, normalized and has no
trailing separator except for the root itself:

    normalize("a/./b/../c/")   → "/a/c"
    parent("/a/b/c")           → "/a/b"
    basename("/a/b/c.txt")     → "c.txt"
    ancestors("/a/b/c")        → ["/", "/a", "/a/b"]
"""

from __future__ import annotations

import re

from mvfs.errors import InvalidPathError

ROOT = "/"
SEP = "/"

MAX_PATH_LENGTH = 4096
MAX_PATH_DEPTH = 50

_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


def normalize(path: str | None) -> str:
    """Resolve `.` and `..`, collapse repeated separators, force a leading `/`."""
    if not path:
        return ROOT
    resolved: list[str] = []
    for seg in path.split(SEP):
        if seg in ("", "."):
            continue
        if seg == "..":
            if resolved:
                resolved.pop()
        else:
            resolved.append(seg)
    return SEP + SEP.join(resolved)


def segments(path: str) -> list[str]:
    return [s for s in normalize(path).split(SEP) if s]


def depth(path: str) -> int:
    return len(segments(path))


def parent(path: str) -> str:
    p = normalize(path)
    if p == ROOT:
        return ROOT
    head = p[: p.rfind(SEP)]
    return head or ROOT


def basename(path: str) -> str:
    p = normalize(path)
    if p == ROOT:
        return ROOT
    return p[p.rfind(SEP) + 1 :]


def ancestors(path: str) -> list[str]:
    """Every proper ancestor from root down, excluding the path itself."""
    segs = segments(path)
    if not segs:
        return []
    result = [ROOT]
    for i in range(1, len(segs)):
        result.append(SEP + SEP.join(segs[:i]))
    return result


def is_descendant(path: str, ancestor: str) -> bool:
    """True if path lies strictly below ancestor."""
    if ancestor == ROOT:
        return path != ROOT
    return path.startswith(ancestor + SEP)


def validate(path: object) -> str:
    """Check a caller-supplied path and return its normalized form.

    Raises InvalidPathError for non-strings, over-long input, null bytes,
    control characters, or more than MAX_PATH_DEPTH segments.
    """
    if not isinstance(path, str):
        raise InvalidPathError("Path must be a string")
    if len(path) > MAX_PATH_LENGTH:
        raise InvalidPathError(f"Path exceeds maximum length of {MAX_PATH_LENGTH}")
    if "\0" in path:
        raise InvalidPathError("Path must not contain null bytes")
    if _CONTROL_RE.search(path):
        raise InvalidPathError("Path must not contain control characters")
    normalized = normalize(path)
    n = depth(normalized)
    if n > MAX_PATH_DEPTH:
        raise InvalidPathError(f"Path depth {n} exceeds maximum depth of {MAX_PATH_DEPTH}")
    return normalized
