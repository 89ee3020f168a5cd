"""Stack collector — records pipeline events into an EventLog.

One collector is shared by the build orchestrator, the render dispatcher,
the watch session and the entry writer.  Each ``record_*`` method builds a
frozen event with a fresh timestamp.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

from papyre.observability.events import (
    ArtifactLoaded,
    CompileDropped,
    EntriesLoaded,
    EntriesRendered,
    EntriesWritten,
    RebuildFinished,
    RebuildKind,
    now_ns,
)
from papyre.observability.log import EventLog


class StackCollector:
    """Unified event collector for the build pipeline.

    Args:
        log: The EventLog to store events in (a fresh one when omitted).

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Content events -----

    def record_load(self, path: str, *, count: int = 0, load_ms: float = 0.0) -> None:
        self._log.append(
            EntriesLoaded(path=path, count=count, load_ms=load_ms, timestamp_ns=now_ns())
        )

    def record_render(self, *, entries: int = 0, rendered: int = 0) -> None:
        self._log.append(
            EntriesRendered(entries=entries, rendered=rendered, timestamp_ns=now_ns())
        )

    def record_write(
        self,
        path: str,
        *,
        files: int = 0,
        size_bytes: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        self._log.append(
            EntriesWritten(
                path=path,
                files=files,
                size_bytes=size_bytes,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Compiler events -----

    def record_artifact(self, location: str, *, exports: int = 0, eval_ms: float = 0.0) -> None:
        self._log.append(
            ArtifactLoaded(
                location=location, exports=exports, eval_ms=eval_ms, timestamp_ns=now_ns()
            )
        )

    def record_compile_dropped(self, trigger_path: str) -> None:
        self._log.append(CompileDropped(trigger_path=trigger_path, timestamp_ns=now_ns()))

    # ----- Rebuild events -----

    def record_rebuild(
        self,
        kind: RebuildKind,
        trigger_path: str,
        *,
        entries: int = 0,
        error: BaseException | None = None,
        duration_ms: float = 0.0,
    ) -> None:
        """Record the outcome of a full or incremental rebuild."""
        self._log.append(
            RebuildFinished(
                kind=kind,
                trigger_path=trigger_path,
                entries=entries,
                ok=error is None,
                error="" if error is None else str(error),
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )
