"""Entry loader — one content file becomes one Entry.

Dispatches on file extension:

    page.json          -> JSON mapping, body ""
    data.yml / .yaml   -> YAML mapping, body ""
    anything else      -> YAML front matter block + raw body text

Top-level data must be a mapping.  Anything else (a list, a scalar, an empty
document) contributes no metadata and the base ``{path, body}`` is kept.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Collection, Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml
from frontmatter import YAMLHandler

from papyre._errors import ParseError

_JSON_SUFFIXES = frozenset({".json"})
_YAML_SUFFIXES = frozenset({".yml", ".yaml"})

# Directories that never hold content
_SKIP_DIRS = frozenset({"__pycache__"})

_front_matter = YAMLHandler()


@dataclass(frozen=True, slots=True)
class Entry:
    """One content file: its path, body, and merged metadata.

    Attributes:
        path: Path relative to the content root, ``/``-separated.  Unique
            within an entry set.
        body: Raw text for front-matter files, ``""`` for JSON/YAML data.
        metadata: Every other field parsed from the file, including the
            optional ``papyre`` mapping ``{fn: ..., layout: ...}``.

    """

    path: str
    body: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        if key == "path":
            return self.path
        if key == "body":
            return self.body
        return self.metadata[key]

    def __contains__(self, key: object) -> bool:
        return key in ("path", "body") or key in self.metadata

    def get(self, key: str, default: Any = None) -> Any:
        """Read ``path``, ``body`` or a metadata field."""
        try:
            return self[key]
        except KeyError:
            return default

    @property
    def render_function_name(self) -> Any:
        """Value of ``papyre.fn``, or None when absent."""
        papyre = self.metadata.get("papyre")
        if isinstance(papyre, Mapping):
            return papyre.get("fn")
        return None

    @property
    def layout_name(self) -> Any:
        """Value of ``papyre.layout``, or None when absent."""
        papyre = self.metadata.get("papyre")
        if isinstance(papyre, Mapping):
            return papyre.get("layout")
        return None

    def with_body(self, body: str) -> Entry:
        return replace(self, body=body)

    def with_path(self, path: str) -> Entry:
        return replace(self, path=path)


def is_entry(value: object) -> bool:
    """Whether *value* is an Entry with string ``path`` and ``body``."""
    return (
        isinstance(value, Entry)
        and isinstance(value.path, str)
        and isinstance(value.body, str)
    )


def make_entry(path: str, body: str, data: object) -> Entry:
    """Merge parsed *data* over the base ``{path, body}`` fields.

    Parsed ``path``/``body`` values win over the base ones but must be
    strings.  Non-mapping *data* is ignored.

    Raises:
        ParseError: If *data* sets ``path`` or ``body`` to a non-string.

    """
    if not isinstance(data, Mapping):
        return Entry(path=path, body=body)

    metadata = {str(k): v for k, v in data.items()}
    for key in ("path", "body"):
        if key in metadata and not isinstance(metadata[key], str):
            msg = f"field {key!r} must be a string, got {type(metadata[key]).__name__}"
            raise ParseError(path, msg)
    new_path = metadata.pop("path", path)
    new_body = metadata.pop("body", body)
    return Entry(path=new_path, body=new_body, metadata=metadata)


def parse_entry(path: str, content: str) -> Entry:
    """Parse the text of one content file into an Entry.

    Raises:
        ParseError: If the JSON, YAML or front matter is malformed.

    """
    suffix = Path(path).suffix.lower()

    if suffix in _JSON_SUFFIXES:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ParseError(path, f"invalid JSON: {exc}") from exc
        return make_entry(path, "", data)

    if suffix in _YAML_SUFFIXES:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ParseError(path, f"invalid YAML: {exc}") from exc
        return make_entry(path, "", data)

    attributes, body = split_front_matter(path, content)
    return make_entry(path, body, attributes)


def split_front_matter(path: str, content: str) -> tuple[object, str]:
    """Split ``---`` delimited YAML front matter from the body.

    A file without a complete front matter block is all body.  The line
    break after the closing delimiter is not part of the body.

    Raises:
        ParseError: If the front matter is not valid YAML.

    """
    if not _front_matter.detect(content):
        return None, content
    try:
        raw, body = _front_matter.split(content)
    except ValueError:
        # Opening delimiter without a closing one
        return None, content
    try:
        attributes = _front_matter.load(raw)
    except yaml.YAMLError as exc:
        raise ParseError(path, f"invalid front matter: {exc}") from exc
    if body.startswith("\r\n"):
        body = body[2:]
    elif body.startswith("\n"):
        body = body[1:]
    return attributes, body


def relative_entry_path(root: Path, fs_path: Path) -> str:
    """Slash-normalized path of *fs_path* relative to *root*."""
    return fs_path.relative_to(root).as_posix()


async def read_entry(root: Path, fs_path: Path) -> Entry:
    """Read and parse one content file.

    Raises:
        FileNotFoundError: If the file does not exist (watch mode uses this
            to detect removals).
        ParseError: If the file is not UTF-8 text or its content is malformed.

    """
    rel_path = relative_entry_path(root, fs_path)
    try:
        content = await asyncio.to_thread(fs_path.read_text, encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(rel_path, f"not valid UTF-8: {exc}") from exc
    return parse_entry(rel_path, content)


def iter_content_files(
    root: Path,
    *,
    exclude_extensions: Collection[str] = (),
) -> Iterator[Path]:
    """Yield content files under *root* in sorted order.

    Skips dot-files, dot-directories, ``__pycache__`` and files whose
    extension belongs to the template compiler.
    """
    for path in sorted(root.rglob("*")):
        rel_parts = path.relative_to(root).parts
        if any(part.startswith(".") or part in _SKIP_DIRS for part in rel_parts):
            continue
        if path.suffix in exclude_extensions:
            continue
        if path.is_file():
            yield path


async def read_entries(
    root: Path,
    *,
    exclude_extensions: Collection[str] = (),
) -> tuple[Entry, ...]:
    """Read every content file under *root* concurrently.

    Returns entries in path order.  The first failing read aborts the
    whole load.
    """
    root = root.resolve()
    paths = list(iter_content_files(root, exclude_extensions=exclude_extensions))
    entries = await asyncio.gather(*(read_entry(root, path) for path in paths))
    return tuple(entries)


def replace_or_append(entries: Iterable[Entry], entry: Entry) -> tuple[Entry, ...]:
    """Replace the entry with the same path in place, or append it."""
    result = list(entries)
    for i, existing in enumerate(result):
        if existing.path == entry.path:
            result[i] = entry
            return tuple(result)
    result.append(entry)
    return tuple(result)


def remove_entry(entries: Iterable[Entry], path: str) -> tuple[Entry, ...]:
    """Drop every entry whose path equals *path*."""
    return tuple(entry for entry in entries if entry.path != path)
