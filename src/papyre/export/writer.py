"""Entry writer — persist rendered entries as files.

Each entry is written to ``output_dir / entry.path``; parent directories
are created as needed and existing files are overwritten.  Writes run
concurrently.

Paths are renamed before writing, not here: ``rename_entries`` maps
suffixes (``.md`` -> ``.html``) the way a site usually wants them.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from papyre._errors import ExportError
from papyre.content.entry import Entry, is_entry

if TYPE_CHECKING:
    from papyre.observability.collector import StackCollector


@dataclass(frozen=True, slots=True)
class WrittenFile:
    """Record of a single file written.

    Attributes:
        entry_path: The entry's path.
        output_path: Absolute filesystem path to the written file.
        size_bytes: Size of the written file in bytes.

    """

    entry_path: str
    output_path: Path
    size_bytes: int


@dataclass(frozen=True, slots=True)
class WriteResult:
    """Aggregate result of writing an entry set.

    Attributes:
        files: All files written, in entry order.
        duration_ms: Total wall-clock time.
        output_dir: Absolute path to the output directory.

    """

    files: tuple[WrittenFile, ...]
    duration_ms: float
    output_dir: Path

    @property
    def size_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files)


def rename_entries(entries: Iterable[Entry], suffixes: Mapping[str, str]) -> tuple[Entry, ...]:
    """Replace path suffixes, e.g. ``{".md": ".html"}``."""
    renamed: list[Entry] = []
    for entry in entries:
        path = PurePosixPath(entry.path)
        new_suffix = suffixes.get(path.suffix)
        if new_suffix is not None and path.suffix:
            entry = entry.with_path(str(path.with_suffix(new_suffix)))
        renamed.append(entry)
    return tuple(renamed)


def output_path_for(output_dir: Path, entry_path: str) -> Path:
    """Filesystem path for *entry_path* under *output_dir*.

    Raises:
        ExportError: If the entry path is absolute or escapes the output dir.

    """
    rel = PurePosixPath(entry_path)
    if rel.is_absolute() or ".." in rel.parts or not rel.parts:
        msg = f"Entry path {entry_path!r} must be relative and stay inside the output directory"
        raise ExportError(msg)
    return output_dir.joinpath(*rel.parts)


async def write_entries(
    output_dir: Path | str,
    entries: Iterable[Entry],
    *,
    collector: StackCollector | None = None,
) -> WriteResult:
    """Write every entry's body to ``output_dir / entry.path``.

    Raises:
        ExportError: If an item is not an Entry, a path is unsafe, or a
            write fails.

    """
    start = time.perf_counter()
    output_dir = Path(output_dir).resolve()
    entries = tuple(entries)
    for item in entries:
        if not is_entry(item):
            msg = f"Expected an Entry with string path and body, got {item!r}"
            raise ExportError(msg)

    targets = [output_path_for(output_dir, entry.path) for entry in entries]
    sizes = await asyncio.gather(
        *(_write_file(target, entry.body) for target, entry in zip(targets, entries, strict=True))
    )

    files = tuple(
        WrittenFile(entry_path=entry.path, output_path=target, size_bytes=size)
        for entry, target, size in zip(entries, targets, sizes, strict=True)
    )
    elapsed = (time.perf_counter() - start) * 1000
    result = WriteResult(files=files, duration_ms=elapsed, output_dir=output_dir)
    if collector is not None:
        collector.record_write(
            str(output_dir), files=len(files), size_bytes=result.size_bytes, duration_ms=elapsed,
        )
    return result


async def _write_file(path: Path, content: str) -> int:
    try:
        return await asyncio.to_thread(_write_text, path, content)
    except OSError as exc:
        msg = f"Failed to write {path}: {exc}"
        raise ExportError(msg) from exc


def _write_text(path: Path, content: str) -> int:
    """Write text, creating parent dirs as needed; return bytes written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode("utf-8")
    path.write_bytes(data)
    return len(data)
