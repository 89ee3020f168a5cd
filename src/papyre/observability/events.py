"""Unified event model for build observability.

Defines event types for the content pipeline, the template compiler and
the watch session.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal, TypeAlias

RebuildKind: TypeAlias = Literal["full", "incremental"]


# ---------------------------------------------------------------------------
# Content pipeline events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EntriesLoaded:
    """Content files were read into entries.

    Attributes:
        path: Content root (or the single file for incremental loads).
        count: Number of entries loaded.
        load_ms: Time spent reading and parsing in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    count: int
    load_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class EntriesRendered:
    """A render pass completed.

    Attributes:
        entries: Size of the entry set.
        rendered: Entries that went through a render function.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    entries: int
    rendered: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class EntriesWritten:
    """Rendered entries were written to disk.

    Attributes:
        path: Output directory.
        files: Number of files written.
        size_bytes: Total bytes written.
        duration_ms: Time taken in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    files: int
    size_bytes: int
    duration_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Compiler events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ArtifactLoaded:
    """A compiled bundle was evaluated into an artifact.

    Attributes:
        location: Virtual location of the bundle.
        exports: Number of exported names.
        eval_ms: Time spent evaluating in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    location: str
    exports: int
    eval_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class CompileDropped:
    """A successful compilation arrived while a full rebuild was running.

    Attributes:
        trigger_path: Code file(s) that triggered the compilation.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    trigger_path: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Rebuild events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RebuildFinished:
    """A full or incremental rebuild finished (successfully or not).

    Attributes:
        kind: Full (compiler-triggered) or incremental (file-triggered).
        trigger_path: What triggered the rebuild.
        entries: Entries in the result (0 on failure).
        ok: Whether the rebuild succeeded.
        error: Error message on failure, else "".
        duration_ms: Wall-clock time of the rebuild.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    kind: RebuildKind
    trigger_path: str
    entries: int
    ok: bool
    error: str
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class RebuildProfile:
    """Per-stage timing of one rebuild.

    Attributes:
        kind: Full or incremental.
        trigger_path: What triggered the rebuild.
        compile_ms: Template compilation time (full rebuilds only).
        eval_ms: Artifact evaluation time (full rebuilds only).
        load_ms: Entry loading time.
        render_ms: Render dispatch time.
        total_ms: Wall-clock time from ``begin()`` to ``finish()``.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    kind: RebuildKind
    trigger_path: str
    compile_ms: float
    eval_ms: float
    load_ms: float
    render_ms: float
    total_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

StackEvent: TypeAlias = (
    EntriesLoaded
    | EntriesRendered
    | EntriesWritten
    | ArtifactLoaded
    | CompileDropped
    | RebuildFinished
    | RebuildProfile
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
