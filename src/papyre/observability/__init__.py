"""Build observability — one event model for the whole pipeline.

Aggregates events from:
- **Content**: entry loading, render passes, output writes
- **Compiler**: artifact evaluation, dropped compilations
- **Watch session**: rebuild outcomes and per-stage profiles

All events are frozen dataclasses with nanosecond timestamps.

Quick Start:
    >>> from papyre.observability import StackCollector, EventLog
    >>> log = EventLog()
    >>> collector = StackCollector(log)
    >>> # Pass collector to build() or WatchSession(...)

"""

from papyre.observability.collector import StackCollector
from papyre.observability.events import (
    ArtifactLoaded,
    CompileDropped,
    EntriesLoaded,
    EntriesRendered,
    EntriesWritten,
    RebuildFinished,
    RebuildProfile,
    StackEvent,
    now_ns,
)
from papyre.observability.log import EventLog
from papyre.observability.profiler import RebuildProfiler, compute_aggregate_stats, format_timing

__all__ = [
    "ArtifactLoaded",
    "CompileDropped",
    "EntriesLoaded",
    "EntriesRendered",
    "EntriesWritten",
    "EventLog",
    "RebuildFinished",
    "RebuildProfile",
    "RebuildProfiler",
    "StackCollector",
    "StackEvent",
    "compute_aggregate_stats",
    "format_timing",
    "now_ns",
]
