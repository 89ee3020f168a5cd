"""Rebuild profiler — per-stage timing for one rebuild.

Each rebuild gets its own profiler (rebuilds may overlap in watch mode).
``finish()`` produces a ``RebuildProfile`` event, appends it to the log when
one is attached, and ``format_timing()`` renders the human-readable summary that
goes into ``BuildResult.timing``.

"""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from papyre.observability.events import RebuildKind, RebuildProfile, now_ns

if TYPE_CHECKING:
    from papyre.observability.log import EventLog

STAGES = ("compile", "eval", "load", "render")


@dataclass(slots=True)
class _Timer:
    """Accumulates timing for a named stage."""

    name: str
    _start: float = 0.0
    elapsed_ms: float = 0.0

    def start(self) -> None:
        self._start = time.perf_counter()

    def stop(self) -> None:
        if self._start > 0:
            self.elapsed_ms += (time.perf_counter() - self._start) * 1000
            self._start = 0.0


def ms(milliseconds: float) -> str:
    return f"{milliseconds:.2f}ms"


def format_timing(profile: RebuildProfile) -> str:
    """Render a profile the way build results report it.

    Full rebuilds: ``Bundle: 3.10ms, eval: 0.42ms, build: 5.00ms``.
    Incremental rebuilds: ``Build: 1.25ms``.
    """
    if profile.kind == "incremental":
        return f"Build: {ms(profile.load_ms + profile.render_ms)}"
    build_ms = profile.load_ms + profile.render_ms
    return (
        f"Bundle: {ms(profile.compile_ms)}, "
        f"eval: {ms(profile.eval_ms)}, "
        f"build: {ms(build_ms)}"
    )


class RebuildProfiler:
    """Records per-stage timing for a single rebuild.

    Usage::

        profiler = RebuildProfiler(event_log)

        profiler.begin("full", "templates/index.py")
        profiler.record("compile", bundle.compile_ms)
        profiler.start("eval")
        # ... load artifact ...
        profiler.stop("eval")
        profile = profiler.finish()

    Args:
        log: Event log to append the profile to, if any.
        verbose: Print a one-line summary to stderr on ``finish()``.

    """

    __slots__ = ("_kind", "_log", "_t0", "_timers", "_trigger_path", "_verbose")

    def __init__(self, log: EventLog | None = None, *, verbose: bool = False) -> None:
        self._log = log
        self._verbose = verbose
        self._kind: RebuildKind = "full"
        self._trigger_path = ""
        self._t0 = 0.0
        self._timers = {name: _Timer(name=name) for name in STAGES}

    def begin(self, kind: RebuildKind, trigger_path: str = "") -> None:
        """Start profiling a new rebuild."""
        self._kind = kind
        self._trigger_path = trigger_path
        self._t0 = time.perf_counter()
        for timer in self._timers.values():
            timer.elapsed_ms = 0.0

    def start(self, stage: str) -> None:
        self._timers[stage].start()

    def stop(self, stage: str) -> None:
        self._timers[stage].stop()

    def record(self, stage: str, elapsed_ms: float) -> None:
        """Set a stage measured elsewhere (e.g. compile time of a bundle)."""
        self._timers[stage].elapsed_ms = elapsed_ms

    def stage_ms(self, stage: str) -> float:
        return self._timers[stage].elapsed_ms

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._t0) * 1000 if self._t0 > 0 else 0.0

    def finish(self) -> RebuildProfile:
        """Finish profiling and emit the ``RebuildProfile`` event."""
        profile = RebuildProfile(
            kind=self._kind,
            trigger_path=self._trigger_path,
            compile_ms=self._timers["compile"].elapsed_ms,
            eval_ms=self._timers["eval"].elapsed_ms,
            load_ms=self._timers["load"].elapsed_ms,
            render_ms=self._timers["render"].elapsed_ms,
            total_ms=self.elapsed_ms(),
            timestamp_ns=now_ns(),
        )
        if self._log is not None:
            self._log.append(profile)
        if self._verbose:
            print(f"  {format_timing(profile)}", file=sys.stderr)
        return profile


def compute_aggregate_stats(log: EventLog, *, limit: int = 100) -> dict:
    """Latency percentiles and per-stage averages of recent rebuilds."""
    profiles = log.query(event_type=RebuildProfile, limit=limit)
    if not profiles:
        return {"count": 0}

    totals = sorted(p.total_ms for p in profiles)
    count = len(totals)

    def percentile(data: list[float], pct: float) -> float:
        idx = int(len(data) * pct / 100)
        return data[min(idx, len(data) - 1)]

    return {
        "count": count,
        "total_ms": {
            "p50": round(percentile(totals, 50), 1),
            "p95": round(percentile(totals, 95), 1),
            "p99": round(percentile(totals, 99), 1),
            "min": round(totals[0], 1),
            "max": round(totals[-1], 1),
        },
        "avg_by_stage_ms": {
            stage: round(sum(getattr(p, f"{stage}_ms") for p in profiles) / count, 1)
            for stage in STAGES
        },
    }
