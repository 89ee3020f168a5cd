"""Tests for papyre.observability — events, log and collector."""

from __future__ import annotations

import pytest

from papyre.observability import (
    ArtifactLoaded,
    CompileDropped,
    EntriesLoaded,
    EntriesRendered,
    EntriesWritten,
    EventLog,
    RebuildFinished,
    StackCollector,
    now_ns,
)


def rebuild(kind: str = "full", *, ok: bool = True, trigger: str = "index.py") -> RebuildFinished:
    return RebuildFinished(
        kind=kind,  # type: ignore[arg-type]
        trigger_path=trigger,
        entries=0 if not ok else 3,
        ok=ok,
        error="" if ok else "boom",
        duration_ms=1.0,
        timestamp_ns=now_ns(),
    )


class TestEvents:
    """Events are frozen and comparable."""

    def test_frozen(self) -> None:
        event = CompileDropped(trigger_path="index.py", timestamp_ns=1)
        with pytest.raises(AttributeError):
            event.trigger_path = "x"  # type: ignore[misc]

    def test_now_ns_monotonic(self) -> None:
        assert now_ns() <= now_ns()


class TestEventLog:
    """EventLog — bounded ring buffer with filtering."""

    def test_append_and_len(self) -> None:
        log = EventLog()
        log.append(rebuild())
        assert len(log) == 1

    def test_ring_buffer_evicts_oldest(self) -> None:
        log = EventLog(max_events=2)
        for trigger in ("a", "b", "c"):
            log.append(rebuild(trigger=trigger))
        assert [e.trigger_path for e in log.query()] == ["c", "b"]

    def test_query_newest_first_with_limit(self) -> None:
        log = EventLog()
        for trigger in ("a", "b", "c"):
            log.append(rebuild(trigger=trigger))
        assert [e.trigger_path for e in log.query(limit=2)] == ["c", "b"]

    def test_query_by_type_and_kind(self) -> None:
        log = EventLog()
        log.append(rebuild("full"))
        log.append(rebuild("incremental"))
        log.append(CompileDropped(trigger_path="index.py", timestamp_ns=now_ns()))
        assert len(log.query(event_type=RebuildFinished)) == 2
        assert len(log.query(kind="incremental")) == 1
        assert len(log.query(event_type=CompileDropped)) == 1

    def test_query_by_path(self) -> None:
        log = EventLog()
        log.append(rebuild("incremental", trigger="docs/a.md"))
        log.append(rebuild("incremental", trigger="index.md"))
        log.append(ArtifactLoaded(location="/memory-fs/papyre_bundle.py", exports=1, eval_ms=0, timestamp_ns=now_ns()))
        assert [e.trigger_path for e in log.query(path="docs/")] == ["docs/a.md"]
        assert len(log.query(path="memory-fs")) == 1

    def test_query_since(self) -> None:
        log = EventLog()
        log.append(RebuildFinished("full", "a", 0, True, "", 0.0, timestamp_ns=10))
        log.append(RebuildFinished("full", "b", 0, True, "", 0.0, timestamp_ns=20))
        assert [e.trigger_path for e in log.query(since_ns=15)] == ["b"]

    def test_latest(self) -> None:
        log = EventLog()
        assert log.latest(RebuildFinished) is None
        log.append(rebuild(trigger="a"))
        log.append(rebuild(trigger="b"))
        latest = log.latest(RebuildFinished)
        assert latest is not None
        assert latest.trigger_path == "b"

    def test_failures(self) -> None:
        log = EventLog()
        log.append(rebuild(ok=True))
        log.append(rebuild(ok=False, trigger="bad.md"))
        (failure,) = log.failures()
        assert failure.trigger_path == "bad.md"
        assert failure.error == "boom"

    def test_clear(self) -> None:
        log = EventLog()
        log.append(rebuild())
        assert log.clear() == 1
        assert len(log) == 0

    def test_stats(self) -> None:
        log = EventLog(max_events=10)
        log.append(rebuild(ok=True))
        log.append(rebuild(ok=False))
        log.append(CompileDropped(trigger_path="x", timestamp_ns=now_ns()))
        stats = log.stats()
        assert stats["total"] == 3
        assert stats["max_events"] == 10
        assert stats["by_type"] == {"RebuildFinished": 2, "CompileDropped": 1}
        assert stats["rebuilds"] == {"ok": 1, "failed": 1}


class TestStackCollector:
    """StackCollector — one record_* method per event type."""

    def test_default_log(self) -> None:
        assert isinstance(StackCollector().log, EventLog)

    def test_records(self) -> None:
        log = EventLog()
        collector = StackCollector(log)
        collector.record_load("/site", count=3, load_ms=1.5)
        collector.record_render(entries=3, rendered=2)
        collector.record_write("/out", files=3, size_bytes=10, duration_ms=2.0)
        collector.record_artifact("/memory-fs/papyre_bundle.py", exports=4, eval_ms=0.5)
        collector.record_compile_dropped("layouts.py")

        assert log.latest(EntriesLoaded).count == 3  # type: ignore[union-attr]
        assert log.latest(EntriesRendered).rendered == 2  # type: ignore[union-attr]
        assert log.latest(EntriesWritten).size_bytes == 10  # type: ignore[union-attr]
        assert log.latest(ArtifactLoaded).exports == 4  # type: ignore[union-attr]
        assert log.latest(CompileDropped).trigger_path == "layouts.py"  # type: ignore[union-attr]

    def test_record_rebuild_error(self) -> None:
        log = EventLog()
        StackCollector(log).record_rebuild("incremental", "a.md", error=ValueError("nope"))
        event = log.latest(RebuildFinished)
        assert event is not None
        assert not event.ok
        assert event.error == "nope"
        assert event.entries == 0
