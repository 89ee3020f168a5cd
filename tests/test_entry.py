"""Tests for papyre.content.entry — one content file becomes one Entry."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import write
from papyre._errors import ParseError
from papyre.content.entry import (
    Entry,
    is_entry,
    iter_content_files,
    make_entry,
    parse_entry,
    read_entries,
    read_entry,
    remove_entry,
    replace_or_append,
)


# ---------------------------------------------------------------------------
# Entry dataclass
# ---------------------------------------------------------------------------


class TestEntry:
    """Entry — frozen record with dict-style field access."""

    def test_frozen(self) -> None:
        entry = Entry(path="a.md", body="x")
        with pytest.raises(AttributeError):
            entry.body = "y"  # type: ignore[misc]

    def test_item_access(self) -> None:
        entry = Entry(path="a.md", body="x", metadata={"title": "A"})
        assert entry["path"] == "a.md"
        assert entry["body"] == "x"
        assert entry["title"] == "A"
        assert "title" in entry
        assert "path" in entry
        assert "missing" not in entry
        assert entry.get("missing", 1) == 1

    def test_render_function_name(self) -> None:
        entry = Entry(path="a.md", metadata={"papyre": {"fn": "html", "layout": "Index"}})
        assert entry.render_function_name == "html"
        assert entry.layout_name == "Index"

    def test_no_papyre_section(self) -> None:
        entry = Entry(path="a.md", metadata={"papyre": "html"})
        assert entry.render_function_name is None
        assert entry.layout_name is None

    def test_with_body_and_path_copy(self) -> None:
        entry = Entry(path="a.md", body="x", metadata={"title": "A"})
        assert entry.with_body("y") == Entry(path="a.md", body="y", metadata={"title": "A"})
        assert entry.with_path("a.html").path == "a.html"
        assert entry.body == "x"

    def test_is_entry(self) -> None:
        assert is_entry(Entry(path="a.md"))
        assert not is_entry({"path": "a.md", "body": ""})
        assert not is_entry(Entry(path="a.md", body=None))  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestMakeEntry:
    """make_entry — parsed data merged over the base fields."""

    def test_non_mapping_ignored(self) -> None:
        assert make_entry("a.json", "", [1, 2]) == Entry(path="a.json", body="")
        assert make_entry("a.json", "", None) == Entry(path="a.json", body="")

    def test_parsed_path_and_body_win(self) -> None:
        entry = make_entry("a.json", "", {"path": "b.html", "body": "hi", "x": 1})
        assert entry.path == "b.html"
        assert entry.body == "hi"
        assert entry.metadata == {"x": 1}

    def test_non_string_path_rejected(self) -> None:
        with pytest.raises(ParseError, match="'path' must be a string"):
            make_entry("a.json", "", {"path": 3})


class TestParseEntry:
    """parse_entry — dispatch on file extension."""

    def test_front_matter(self) -> None:
        entry = parse_entry(
            "index.md",
            "---\ntitle: Home\npapyre:\n  fn: html\n---\n# Welcome\n",
        )
        assert entry.path == "index.md"
        assert entry.body == "# Welcome\n"
        assert entry.metadata == {"title": "Home", "papyre": {"fn": "html"}}

    def test_no_front_matter(self) -> None:
        entry = parse_entry("notes.txt", "just text\n")
        assert entry == Entry(path="notes.txt", body="just text\n")

    def test_unclosed_front_matter_is_body(self) -> None:
        content = "---\ntitle: Home\nno closing line\n"
        entry = parse_entry("a.md", content)
        assert entry.body == content
        assert entry.metadata == {}

    def test_scalar_front_matter_ignored(self) -> None:
        entry = parse_entry("a.md", "---\njust a string\n---\nbody\n")
        assert entry == Entry(path="a.md", body="body\n")

    def test_front_matter_overrides_path(self) -> None:
        entry = parse_entry("a.md", "---\npath: about/index.html\n---\nbody\n")
        assert entry.path == "about/index.html"
        assert "path" not in entry.metadata

    def test_invalid_front_matter(self) -> None:
        with pytest.raises(ParseError, match="Failed to parse entry at a.md"):
            parse_entry("a.md", "---\ntitle: [unclosed\n---\nbody\n")

    def test_json(self) -> None:
        entry = parse_entry("data.json", '{"title": "Data", "count": 3}')
        assert entry.body == ""
        assert entry.metadata == {"title": "Data", "count": 3}

    def test_json_list_keeps_base(self) -> None:
        assert parse_entry("list.json", "[1, 2]") == Entry(path="list.json", body="")

    def test_invalid_json(self) -> None:
        with pytest.raises(ParseError, match="invalid JSON"):
            parse_entry("data.json", "{not json")

    @pytest.mark.parametrize("name", ["site.yml", "site.yaml"])
    def test_yaml(self, name: str) -> None:
        entry = parse_entry(name, "name: Example\npapyre:\n  fn: listing\n")
        assert entry.body == ""
        assert entry["name"] == "Example"
        assert entry.render_function_name == "listing"

    def test_empty_yaml(self) -> None:
        assert parse_entry("empty.yml", "") == Entry(path="empty.yml", body="")

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ParseError, match="invalid YAML"):
            parse_entry("site.yml", "name: [unclosed\n")


# ---------------------------------------------------------------------------
# Reading from disk
# ---------------------------------------------------------------------------


class TestReadEntries:
    """read_entry / read_entries — files under a content root."""

    @pytest.mark.asyncio
    async def test_read_entry_relative_path(self, tmp_path: Path) -> None:
        path = write(tmp_path / "docs" / "a.md", "---\ntitle: A\n---\nbody\n")
        entry = await read_entry(tmp_path, path)
        assert entry.path == "docs/a.md"
        assert entry["title"] == "A"

    @pytest.mark.asyncio
    async def test_read_binary_file(self, tmp_path: Path) -> None:
        path = tmp_path / "logo.png"
        path.write_bytes(b"\x89PNG\xff")
        with pytest.raises(ParseError, match="Failed to parse entry at logo.png: not valid UTF-8") as exc_info:
            await read_entry(tmp_path, path)
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)

    @pytest.mark.asyncio
    async def test_read_missing_entry(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            await read_entry(tmp_path, tmp_path / "gone.md")

    def test_iter_content_files_skips(self, tmp_path: Path) -> None:
        write(tmp_path / "index.py", "")
        write(tmp_path / "a.md", "")
        write(tmp_path / ".hidden.md", "")
        write(tmp_path / ".git" / "config", "")
        write(tmp_path / "__pycache__" / "index.cpython-312.pyc", "")
        write(tmp_path / "sub" / "b.json", "{}")

        files = list(iter_content_files(tmp_path, exclude_extensions=(".py",)))
        assert [f.relative_to(tmp_path).as_posix() for f in files] == ["a.md", "sub/b.json"]

    @pytest.mark.asyncio
    async def test_read_entries_path_order(self, templates_dir: Path) -> None:
        entries = await read_entries(templates_dir, exclude_extensions=(".py",))
        assert [e.path for e in entries] == [
            "data.json",
            "docs/intro.md",
            "index.md",
            "site.yml",
        ]

    @pytest.mark.asyncio
    async def test_read_entries_fails_on_bad_file(self, tmp_path: Path) -> None:
        write(tmp_path / "good.md", "ok\n")
        write(tmp_path / "bad.json", "{")
        with pytest.raises(ParseError, match="bad.json"):
            await read_entries(tmp_path)


# ---------------------------------------------------------------------------
# Entry-set splicing
# ---------------------------------------------------------------------------


class TestSplicing:
    """replace_or_append / remove_entry — new tuples, order preserved."""

    def test_replace_in_place(self) -> None:
        entries = (Entry(path="a.md", body="1"), Entry(path="b.md", body="2"))
        result = replace_or_append(entries, Entry(path="a.md", body="new"))
        assert [e.body for e in result] == ["new", "2"]
        assert entries[0].body == "1"

    def test_append_new(self) -> None:
        entries = (Entry(path="a.md"),)
        result = replace_or_append(entries, Entry(path="c.md"))
        assert [e.path for e in result] == ["a.md", "c.md"]

    def test_remove(self) -> None:
        entries = (Entry(path="a.md"), Entry(path="b.md"))
        assert remove_entry(entries, "a.md") == (Entry(path="b.md"),)
        assert remove_entry(entries, "zzz.md") == entries
