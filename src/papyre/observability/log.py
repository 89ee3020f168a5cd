"""Event log — bounded store of build events.

Keeps the most recent ``StackEvent`` objects in a ring buffer and answers
the questions a watch session asks of its history: what happened last,
which rebuilds failed, what touched a given path.

Thread Safety:
    All methods are protected by a ``threading.Lock``.  Safe to append from
    worker threads (entry reads run via ``asyncio.to_thread``).

"""

import threading
from collections import deque
from typing import Any

from papyre.observability.events import RebuildFinished, StackEvent

# Attributes that identify what an event is about
_PATH_FIELDS = ("path", "trigger_path", "location")


def _event_path(event: StackEvent) -> str:
    for name in _PATH_FIELDS:
        value = getattr(event, name, None)
        if value:
            return str(value)
    return ""


class EventLog:
    """Ring buffer of events with simple filtering.

    Args:
        max_events: Maximum number of events to retain; the oldest are
            discarded first.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 5_000) -> None:
        self._max_events = max_events
        self._events: deque[StackEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: StackEvent) -> None:
        with self._lock:
            self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        kind: str | None = None,
        path: str | None = None,
        since_ns: int = 0,
        limit: int = 100,
    ) -> list[StackEvent]:
        """Return matching events, newest first.

        Args:
            event_type: Only events of this class.
            kind: Only events whose ``kind`` equals this (rebuild events).
            path: Only events whose path, trigger or location contains this.
            since_ns: Only events at or after this monotonic timestamp.
            limit: Maximum number of events.

        """
        with self._lock:
            snapshot = list(self._events)

        results: list[StackEvent] = []
        for event in reversed(snapshot):
            if len(results) >= limit:
                break
            if event_type is not None and not isinstance(event, event_type):
                continue
            if kind is not None and getattr(event, "kind", None) != kind:
                continue
            if since_ns and event.timestamp_ns < since_ns:
                continue
            if path is not None and path not in _event_path(event):
                continue
            results.append(event)
        return results

    def latest(self, event_type: type) -> StackEvent | None:
        """Most recent event of *event_type*, or None."""
        found = self.query(event_type=event_type, limit=1)
        return found[0] if found else None

    def failures(self, limit: int = 20) -> list[RebuildFinished]:
        """Most recent failed rebuilds, newest first."""
        with self._lock:
            snapshot = list(self._events)
        failed = [
            e for e in reversed(snapshot)
            if isinstance(e, RebuildFinished) and not e.ok
        ]
        return failed[:limit]

    def clear(self) -> int:
        """Clear all events and return the count that was cleared."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> dict[str, Any]:
        """Event counts by type and rebuild outcome."""
        with self._lock:
            events = list(self._events)

        by_type: dict[str, int] = {}
        ok = failed = 0
        for event in events:
            name = type(event).__name__
            by_type[name] = by_type.get(name, 0) + 1
            if isinstance(event, RebuildFinished):
                if event.ok:
                    ok += 1
                else:
                    failed += 1

        return {
            "total": len(events),
            "max_events": self._max_events,
            "by_type": by_type,
            "rebuilds": {"ok": ok, "failed": failed},
        }
