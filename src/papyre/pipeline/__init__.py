"""Pipeline layer — one-shot builds and watch-mode sessions."""

from papyre.pipeline.build import build, build_sync, full_rebuild
from papyre.pipeline.result import BuildResult, Snapshot
from papyre.pipeline.watch import SessionState, WatchSession, watch

__all__ = [
    "BuildResult",
    "SessionState",
    "Snapshot",
    "WatchSession",
    "build",
    "build_sync",
    "full_rebuild",
    "watch",
]
