"""Unit tests for mvfs.paths."""

import pytest

from mvfs import paths
from mvfs.errors import InvalidArgumentError, InvalidPathError

SAMPLES = [
    "", "/", "a", "/a/b/c", "a//b///c/", "/a/./b/../c", "/../..", "/a/../../b",
    "./x", "/a/b/", "//", "/a/.../b", "/files/v1.2.txt",
]


class TestNormalize:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("", "/"),
            (None, "/"),
            ("/", "/"),
            ("a/b", "/a/b"),
            ("/a//b/", "/a/b"),
            ("/a/./b/../c", "/a/c"),
            ("/../..", "/"),
            ("/a/../../b", "/b"),
            ("/a/.../b", "/a/.../b"),
            ("/notes/v1.2.md", "/notes/v1.2.md"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert paths.normalize(raw) == expected

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_idempotent(self, raw):
        once = paths.normalize(raw)
        assert paths.normalize(once) == once

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_no_trailing_separator(self, raw):
        p = paths.normalize(raw)
        assert p.startswith("/")
        assert p == "/" or not p.endswith("/")


class TestParentBasenameAncestors:
    def test_parent(self):
        assert paths.parent("/a/b/c") == "/a/b"
        assert paths.parent("/a") == "/"
        assert paths.parent("/") == "/"

    def test_basename(self):
        assert paths.basename("/a/b/c.ts") == "c.ts"
        assert paths.basename("/a") == "a"
        assert paths.basename("/") == "/"

    def test_ancestors(self):
        assert paths.ancestors("/a/b/c") == ["/", "/a", "/a/b"]
        assert paths.ancestors("/a") == ["/"]
        assert paths.ancestors("/") == []

    @pytest.mark.parametrize("p", ["/a", "/a/b", "/x/y/z/w.txt", "/deep/nested/file.txt"])
    def test_parent_is_last_ancestor(self, p):
        anc = paths.ancestors(p)
        assert paths.parent(p) in anc
        assert anc[-1] == paths.parent(p)
        assert len(anc) == len(p.split("/")) - 1

    def test_is_descendant(self):
        assert paths.is_descendant("/a/b", "/a")
        assert not paths.is_descendant("/ab", "/a")
        assert not paths.is_descendant("/a", "/a")
        assert paths.is_descendant("/a", "/")


class TestValidate:
    def test_returns_normalized(self):
        assert paths.validate("a/./b/") == "/a/b"

    def test_rejects_non_string(self):
        with pytest.raises(InvalidPathError, match="string"):
            paths.validate(123)

    def test_rejects_too_long(self):
        with pytest.raises(InvalidPathError, match="maximum length"):
            paths.validate("/" + "a" * paths.MAX_PATH_LENGTH)

    def test_rejects_null_byte(self):
        with pytest.raises(InvalidPathError, match="null"):
            paths.validate("/a\0b")

    @pytest.mark.parametrize("raw", ["/a\nb", "/a\tb", "/a\x1fb", "/a\x7f"])
    def test_rejects_control_characters(self, raw):
        with pytest.raises(InvalidPathError, match="control"):
            paths.validate(raw)

    def test_depth_50_accepted(self):
        p = "/" + "/".join(["d"] * 50)
        assert paths.validate(p) == p

    def test_depth_51_rejected(self):
        p = "/" + "/".join(["d"] * 51)
        with pytest.raises(InvalidPathError, match="depth"):
            paths.validate(p)

    def test_invalid_path_is_invalid_argument(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            paths.validate("/a\0")
        assert exc_info.value.code == "EINVAL"
        assert exc_info.value.kind == "InvalidArgument"
