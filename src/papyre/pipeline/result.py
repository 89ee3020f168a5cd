"""Build results returned by one-shot builds and watch-mode rebuilds."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from papyre._types import EntrySet, Tree
    from papyre.bundle.artifact import Artifact
    from papyre.observability.events import RebuildProfile


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Rendered entries of one build or rebuild.

    Attributes:
        entries: The entry set with rendered bodies, in entry-set order.
        timing: Human-readable stage timing, e.g.
            ``"Bundle: 3.10ms, eval: 0.42ms, build: 5.00ms"``.
        profile: Structured per-stage timing.

    """

    entries: EntrySet
    timing: str
    profile: RebuildProfile | None = None


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Everything a successful full rebuild produced.

    The watch session swaps its live state to a snapshot in one step.

    Attributes:
        artifact: The evaluated template exports.
        entries: The unrendered entry set read from disk.
        tree: Tree built from ``entries``.
        result: The rendered result.

    """

    artifact: Artifact
    entries: EntrySet
    tree: Tree
    result: BuildResult
