"""VirtualFS behaviour, one session per test unless stated otherwise."""

import pytest

from mvfs import vfs as vfs_module
from mvfs.errors import (
    AlreadyExistsError,
    InvalidArgumentError,
    IsDirectoryError,
    NotDirectoryError,
    NotFoundError,
    VfsError,
)

S = "session-1"


def _codes(excinfo):
    return excinfo.value.code


class TestReadWrite:
    def test_write_then_read(self, fs):
        fs.write(S, "/hello.txt", "Hello, world!")
        assert fs.read(S, "/hello.txt") == "Hello, world!"
        assert fs.stat(S, "/hello.txt").to_dict() == {"exists": True, "type": "file", "size": 13}

    def test_write_creates_parents(self, fs):
        assert fs.write(S, "/deep/nested/dir/file.txt", "deep content") is True
        assert fs.read(S, "/deep/nested/dir/file.txt") == "deep content"
        assert [(e.name, e.type) for e in fs.ls(S, "/deep")] == [("nested", "directory")]
        assert fs.write(S, "/deep/nested/dir/other.txt", "x") is False

    def test_write_at_top_level_creates_no_parents(self, fs):
        assert fs.write(S, "/top.txt", "x") is False

    def test_overwrite(self, fs):
        fs.write(S, "/f.txt", "one")
        fs.write(S, "/f.txt", "two")
        assert fs.read(S, "/f.txt") == "two"

    def test_empty_content(self, fs):
        fs.write(S, "/empty.txt", "")
        assert fs.read(S, "/empty.txt") == ""
        assert fs.stat(S, "/empty.txt").size == 0

    def test_unicode_size_counts_characters(self, fs):
        fs.write(S, "/u.txt", "héllo")
        assert fs.stat(S, "/u.txt").size == 5

    def test_paths_are_normalized(self, fs):
        fs.write(S, "a//b/../c.txt", "x")
        assert fs.read(S, "/a/c.txt") == "x"

    def test_read_missing(self, fs):
        with pytest.raises(NotFoundError) as excinfo:
            fs.read(S, "/nope.txt")
        assert _codes(excinfo) == "ENOENT"

    def test_read_directory(self, fs):
        fs.mkdir(S, "/dir")
        with pytest.raises(IsDirectoryError) as excinfo:
            fs.read(S, "/dir")
        assert _codes(excinfo) == "EISDIR"

    def test_write_to_root(self, fs):
        with pytest.raises(InvalidArgumentError):
            fs.write(S, "/", "x")

    def test_write_over_directory(self, fs):
        fs.mkdir(S, "/dir")
        with pytest.raises(IsDirectoryError):
            fs.write(S, "/dir", "x")

    def test_write_below_file(self, fs):
        fs.write(S, "/file.txt", "x")
        with pytest.raises(NotDirectoryError) as excinfo:
            fs.write(S, "/file.txt/child.txt", "y")
        assert _codes(excinfo) == "ENOTDIR"
        assert fs.read(S, "/file.txt") == "x"

    def test_invalid_path(self, fs):
        with pytest.raises(InvalidArgumentError) as excinfo:
            fs.write(S, "/bad\x00name", "x")
        assert _codes(excinfo) == "EINVAL"


class TestAppend:
    def test_append_concatenates(self, fs):
        fs.write(S, "/log.txt", "line1\n")
        fs.append(S, "/log.txt", "line2\n")
        assert fs.read(S, "/log.txt") == "line1\nline2\n"

    def test_append_creates_file_and_parents(self, fs):
        fs.append(S, "/logs/new.txt", "first")
        assert fs.read(S, "/logs/new.txt") == "first"
        assert fs.stat(S, "/logs").type == "directory"

    def test_append_to_directory(self, fs):
        fs.mkdir(S, "/dir")
        with pytest.raises(IsDirectoryError):
            fs.append(S, "/dir", "x")


class TestStatLs:
    def test_stat_missing(self, fs):
        assert fs.stat(S, "/missing").to_dict() == {"exists": False}

    def test_stat_directory_counts_children(self, fs):
        fs.write(S, "/d/a.txt", "a")
        fs.write(S, "/d/b.txt", "b")
        fs.write(S, "/d/sub/c.txt", "c")
        assert fs.stat(S, "/d").to_dict() == {"exists": True, "type": "directory", "children": 3}

    def test_stat_root_of_new_session(self, fs):
        assert fs.stat(S, "/").to_dict() == {"exists": True, "type": "directory", "children": 0}

    def test_ls_directories_first(self, fs):
        fs.write(S, "/b.txt", "")
        fs.write(S, "/a.txt", "")
        fs.mkdir(S, "/zdir")
        fs.mkdir(S, "/adir")
        assert [(e.name, e.type) for e in fs.ls(S, "/")] == [
            ("adir", "directory"),
            ("zdir", "directory"),
            ("a.txt", "file"),
            ("b.txt", "file"),
        ]

    def test_ls_missing(self, fs):
        with pytest.raises(NotFoundError):
            fs.ls(S, "/missing")

    def test_ls_file(self, fs):
        fs.write(S, "/f.txt", "")
        with pytest.raises(NotDirectoryError):
            fs.ls(S, "/f.txt")


class TestMkdirRm:
    def test_mkdir_idempotent(self, fs):
        assert fs.mkdir(S, "/a/b/c") is False
        first = fs.backend.get_node(S, "/a/b/c")
        assert fs.mkdir(S, "/a/b/c") is True
        assert fs.stat(S, "/a/b").type == "directory"
        assert [n.path for n in fs.backend.list_children(S, "/a/b")] == ["/a/b/c"]
        assert fs.stat(S, "/a/b").children == 1
        assert fs.backend.get_node(S, "/a/b/c").created_at == first.created_at

    def test_mkdir_root(self, fs):
        assert fs.mkdir(S, "/") is True

    def test_mkdir_over_file(self, fs):
        fs.write(S, "/f", "x")
        with pytest.raises(AlreadyExistsError) as excinfo:
            fs.mkdir(S, "/f")
        assert _codes(excinfo) == "EEXIST"

    def test_rm_recursive(self, fs):
        fs.write(S, "/dir/a.txt", "a")
        fs.write(S, "/dir/sub/b.txt", "b")
        assert fs.rm(S, "/dir") >= 4
        assert fs.stat(S, "/dir").exists is False
        assert fs.stat(S, "/dir/sub/b.txt").exists is False

    def test_rm_leaves_prefix_siblings(self, fs):
        fs.write(S, "/dir/a.txt", "a")
        fs.write(S, "/dir2/b.txt", "b")
        fs.rm(S, "/dir")
        assert fs.read(S, "/dir2/b.txt") == "b"

    def test_rm_root(self, fs):
        with pytest.raises(InvalidArgumentError):
            fs.rm(S, "/")

    def test_rm_missing(self, fs):
        with pytest.raises(NotFoundError):
            fs.rm(S, "/missing")


class TestMove:
    def test_move_file(self, fs):
        fs.write(S, "/old.txt", "data")
        fs.move(S, "/old.txt", "/new.txt")
        assert fs.read(S, "/new.txt") == "data"
        assert fs.stat(S, "/old.txt").exists is False

    def test_move_directory_with_children(self, fs):
        fs.write(S, "/src/a.txt", "a")
        fs.write(S, "/src/sub/b.txt", "b")
        fs.move(S, "/src", "/dst")
        assert fs.read(S, "/dst/a.txt") == "a"
        assert fs.read(S, "/dst/sub/b.txt") == "b"
        assert fs.stat(S, "/src").exists is False

    def test_move_creates_destination_parents(self, fs):
        fs.write(S, "/f.txt", "x")
        fs.move(S, "/f.txt", "/new/place/f.txt")
        assert fs.read(S, "/new/place/f.txt") == "x"

    def test_move_into_itself(self, fs):
        fs.mkdir(S, "/dir")
        with pytest.raises(InvalidArgumentError):
            fs.move(S, "/dir", "/dir/sub")

    def test_move_onto_itself(self, fs):
        fs.mkdir(S, "/dir")
        with pytest.raises(AlreadyExistsError):
            fs.move(S, "/dir", "/dir")

    def test_move_to_prefix_sibling_allowed(self, fs):
        fs.write(S, "/a/f.txt", "x")
        fs.move(S, "/a", "/ab")
        assert fs.read(S, "/ab/f.txt") == "x"

    def test_move_root(self, fs):
        with pytest.raises(InvalidArgumentError):
            fs.move(S, "/", "/x")
        fs.write(S, "/x", "")
        with pytest.raises(InvalidArgumentError):
            fs.move(S, "/x", "/")

    def test_move_missing_source(self, fs):
        with pytest.raises(NotFoundError):
            fs.move(S, "/missing", "/x")

    def test_move_onto_existing(self, fs):
        fs.write(S, "/a", "a")
        fs.write(S, "/b", "b")
        with pytest.raises(AlreadyExistsError):
            fs.move(S, "/a", "/b")
        assert fs.read(S, "/a") == "a"


class TestGlob:
    @pytest.fixture
    def populated(self, fs):
        for p in ("/src/main.ts", "/src/utils.ts", "/src/lib/helper.ts", "/src/lib/helper.js", "/README.md"):
            fs.write(S, p, "")
        return fs

    def test_recursive(self, populated):
        assert populated.glob(S, "/src/**/*.ts") == ["/src/lib/helper.ts", "/src/main.ts", "/src/utils.ts"]

    def test_single_level(self, populated):
        assert populated.glob(S, "/src/*.ts") == ["/src/main.ts", "/src/utils.ts"]

    def test_braces(self, populated):
        assert populated.glob(S, "/src/lib/*.{ts,js}") == ["/src/lib/helper.js", "/src/lib/helper.ts"]

    def test_relative_pattern_matches_from_root(self, populated):
        assert populated.glob(S, "*.md") == ["/README.md"]

    def test_no_directories(self, populated):
        assert "/src" not in populated.glob(S, "/**")

    def test_empty_pattern(self, fs):
        with pytest.raises(InvalidArgumentError):
            fs.glob(S, "")

    def test_too_many_files(self, fs, monkeypatch):
        monkeypatch.setattr(vfs_module, "MAX_GLOB_PATHS", 3)
        for i in range(4):
            fs.write(S, f"/f{i}.txt", "")
        with pytest.raises(InvalidArgumentError, match="Too many files"):
            fs.glob(S, "/*.txt")


class TestGrep:
    def test_line_numbers_in_large_file(self, fs):
        content = "\n".join(f"line {i} " + "x" * 40 for i in range(1, 20_001)) + "\n"
        fs.write(S, "/big.txt", content)
        matches = fs.grep(S, r"^line (7|10000|20000) ")
        assert [(m.line_number, m.line.split()[1]) for m in matches] == [(7, "7"), (10000, "10000"), (20000, "20000")]
        assert [m.line_number for m in fs.grep(S, "^$")] == [20001]

    def test_line_numbers(self, fs):
        fs.write(S, "/data.txt", "foo123\nbar456\nfoo789\n")
        matches = fs.grep(S, r"foo\d+")
        assert [m.to_dict() for m in matches] == [
            {"path": "/data.txt", "lineNumber": 1, "line": "foo123"},
            {"path": "/data.txt", "lineNumber": 3, "line": "foo789"},
        ]

    def test_path_filter(self, fs):
        fs.write(S, "/src/main.ts", "hello")
        fs.write(S, "/src/main_test.ts", "hello")
        fs.write(S, "/other/main.ts", "hello")
        assert [m.path for m in fs.grep(S, "hello", "/src/main*")] == ["/src/main.ts", "/src/main_test.ts"]

    def test_path_filter_recursive(self, fs):
        fs.write(S, "/src/a/b.ts", "hello")
        fs.write(S, "/lib/c.ts", "hello")
        assert [m.path for m in fs.grep(S, "hello", "/src/**")] == ["/src/a/b.ts"]

    def test_no_match(self, fs):
        fs.write(S, "/f", "abc")
        assert fs.grep(S, "xyz") == []

    def test_invalid_regex(self, fs):
        with pytest.raises(InvalidArgumentError, match="Invalid regex"):
            fs.grep(S, "[unclosed")


def test_errors_share_base_class(fs):
    with pytest.raises(VfsError):
        fs.read(S, "/missing")
