"""Glob patterns: in-process matching and translation to SQL LIKE.

Two independent dialects meet here:

    compile_glob("/src/**/*.{ts,js}")  → compiled regex for VirtualFS.glob
    glob_to_like("/src/**/*_test.py")  → "/src/%/%\\_test.py" for grep filters

Glob syntax:
    *       any run of characters inside one path segment
    **      as a whole segment: zero or more segments; elsewhere like *
    ?       one character, not a separator
    [abc]   character class ([!abc] negates)
    {a,b}   alternation, nestable
    \\x     literal x

Patterns starting with "/" are anchored at root; patterns without a leading
"/" are matched against the path relative to root, so "**/*.md" and
"/**/*.md" are equivalent.
"""

from __future__ import annotations

import re
from functools import lru_cache

LIKE_ESCAPE = "\\"


def _closing_brace(p: str, start: int) -> int:
    """Index of the } closing the { at start, or -1."""
    level = 0
    i = start
    while i < len(p):
        c = p[i]
        if c == "\\":
            i += 2
            continue
        if c == "{":
            level += 1
        elif c == "}":
            level -= 1
            if level == 0:
                return i
        i += 1
    return -1


def _split_top_level(body: str) -> list[str]:
    parts: list[str] = []
    level = 0
    current: list[str] = []
    i = 0
    while i < len(body):
        c = body[i]
        if c == "\\" and i + 1 < len(body):
            current.append(body[i : i + 2])
            i += 2
            continue
        if c == "{":
            level += 1
        elif c == "}":
            level -= 1
        elif c == "," and level == 0:
            parts.append("".join(current))
            current = []
            i += 1
            continue
        current.append(c)
        i += 1
    parts.append("".join(current))
    return parts


def _translate(p: str, start_ok: bool = True, end_ok: bool = True) -> str:
    """Regex for p. start_ok/end_ok: whether p begins/ends on a segment boundary."""
    n = len(p)
    out: list[str] = []
    i = 0
    while i < n:
        c = p[i]
        if c == "*":
            j = i
            while j < n and p[j] == "*":
                j += 1
            seg_start = start_ok if i == 0 else p[i - 1] == "/"
            seg_end = end_ok if j == n else p[j] == "/"
            if j - i >= 2 and seg_start and seg_end:
                if j == n:
                    out.append(".*")
                    i = j
                else:
                    out.append("(?:[^/]*/)*")
                    i = j + 1
            else:
                out.append("[^/]*")
                i = j
        elif c == "{":
            close = _closing_brace(p, i)
            options = _split_top_level(p[i + 1 : close]) if close != -1 else []
            if len(options) < 2:
                # "{x}" without a comma is literal
                out.append(re.escape(c))
                i += 1
                continue
            inner_start = start_ok if i == 0 else p[i - 1] == "/"
            inner_end = end_ok if close == n - 1 else p[close + 1] == "/"
            out.append("(?:" + "|".join(_translate(o, inner_start, inner_end) for o in options) + ")")
            i = close + 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "[":
            close = p.find("]", i + 2)
            if close == -1:
                out.append(re.escape(c))
                i += 1
                continue
            body = p[i + 1 : close]
            negate = body.startswith("!")
            if negate:
                body = body[1:]
            body = body.replace("\\", "\\\\")
            out.append(("[^" if negate else "[") + body + "]")
            i = close + 1
        elif c == "\\" and i + 1 < n:
            out.append(re.escape(p[i + 1]))
            i += 2
        else:
            out.append(re.escape(c))
            i += 1
    return "".join(out)


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a glob into a regex to be used with fullmatch on a relative path."""
    return re.compile(_translate(pattern.lstrip("/")), re.DOTALL)


def glob_match(pattern: str, path: str) -> bool:
    """True if the absolute path matches the glob pattern."""
    return compile_glob(pattern).fullmatch(path.lstrip("/")) is not None


def glob_to_like(pattern: str) -> str:
    """Translate a glob filter into a LIKE pattern using ESCAPE '\\'.

    LIKE metacharacters already present (%, _ and the escape character) are
    escaped first, then ** and * both become %. Relative filters are
    anchored at root.
    """
    escaped = (
        pattern.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    like = escaped.replace("**", "%").replace("*", "%")
    if not like.startswith(("/", "%")):
        like = "/" + like
    return like
