"""File watcher — triggers incremental rebuilds on content changes.

Monitors the content directory and yields one ChangeEvent per changed
content file.  Template code files live in the same directory but belong to
the compiler, which watches them itself; they are filtered out here.
"""

from __future__ import annotations

import asyncio
from collections.abc import Collection
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TypeAlias

from watchfiles import Change, awatch

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

ChangeKind: TypeAlias = Literal["created", "modified", "deleted"]


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A content file change detected by the watcher.

    Attributes:
        path: Absolute path to the changed file.
        kind: Type of filesystem change.

    """

    path: Path
    kind: ChangeKind


# Mapping from watchfiles Change enum to our kind literals.
_CHANGE_KIND_MAP: dict[Change, ChangeKind] = {
    Change.added: "created",
    Change.modified: "modified",
    Change.deleted: "deleted",
}


def is_content_change(path: Path, root: Path, code_extensions: Collection[str]) -> bool:
    """Whether a change at *path* concerns content under *root*.

    False for files outside root, dot-files, ``__pycache__`` and template
    code files.
    """
    try:
        rel = path.relative_to(root)
    except ValueError:
        return False

    parts = rel.parts
    if not parts:
        return False
    if any(part.startswith(".") or part == "__pycache__" for part in parts):
        return False
    return path.suffix not in code_extensions


class ContentWatcher:
    """Watches a content directory and yields ChangeEvents.

    Uses watchfiles for efficient filesystem monitoring.  ``changes()`` is
    an async iterator that ends once ``stop()`` is called.

    Args:
        root: Content directory to watch.
        code_extensions: Extensions to ignore (owned by the compiler).
        debounce: Milliseconds to group changes before yielding.

    """

    def __init__(
        self,
        root: Path,
        *,
        code_extensions: Collection[str] = (".py",),
        debounce: int = 300,
    ) -> None:
        self._root = root.resolve()
        self._code_extensions = tuple(code_extensions)
        self._debounce = debounce
        self._stop_event = asyncio.Event()
        self._running = False

    @property
    def root(self) -> Path:
        return self._root

    @property
    def is_running(self) -> bool:
        """Whether ``changes()`` is currently iterating."""
        return self._running

    @property
    def is_stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Signal the watcher to stop.  ``changes()`` ends shortly after."""
        self._stop_event.set()

    def _filter(self, change: Change, path: str) -> bool:
        return is_content_change(Path(path), self._root, self._code_extensions)

    async def changes(self) -> AsyncIterator[ChangeEvent]:
        """Async iterator that yields ChangeEvent objects as they occur."""
        if self.is_stopped:
            return
        self._running = True
        try:
            async for raw_changes in awatch(
                self._root,
                watch_filter=self._filter,
                stop_event=self._stop_event,
                debounce=self._debounce,
                step=50,
            ):
                for change_type, path_str in sorted(raw_changes, key=lambda c: c[1]):
                    kind = _CHANGE_KIND_MAP.get(change_type, "modified")
                    yield ChangeEvent(path=Path(path_str), kind=kind)
        finally:
            self._running = False
