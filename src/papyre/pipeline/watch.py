"""Watch session — incremental rebuilds from two independent event sources.

Flow::

    start()
      └─ compiler loop: TemplateCompiler.watch()
           CompileResult ok     -> full rebuild (artifact + all entries)
           CompileResult failed -> on_done(CompileError, None)
           first full rebuild done -> READY, start content loop
    content loop: ContentWatcher.changes()
           ChangeEvent          -> reload one entry, re-render everything

States::

    IDLE -> COMPILING -> READY <-> REBUILDING
                     \\-> CLOSED (from any state, via close())

Concurrency rules:

- Only full rebuilds are serialized.  A successful compilation that arrives
  while a full rebuild is in flight (``building``) is dropped, not queued.
- Incremental rebuilds are not serialized.  Each one splices its entry into
  the live entry set synchronously once its file read completes, so
  overlapping splices never lose each other, but their results may be
  reported in any order and may interleave with a full rebuild.
- A full rebuild swaps artifact, entries and tree in one step after it has
  fully succeeded.  Incremental rebuilds read whatever artifact is live.
- ``on_done`` fires exactly once per handled trigger, including triggers
  whose handler had started when ``close()`` was called.  Triggers whose
  handler had not started yet are discarded without a callback.
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from papyre._errors import ConfigError
from papyre.bundle.artifact import ArtifactLoader
from papyre.bundle.compiler import TemplateCompiler
from papyre.config import CompilerConfig, reconfigure
from papyre.content.entry import read_entry, relative_entry_path, remove_entry, replace_or_append
from papyre.content.tree import entries_to_tree
from papyre.content.watcher import ContentWatcher
from papyre.observability.collector import StackCollector
from papyre.observability.profiler import RebuildProfiler, format_timing
from papyre.pipeline.build import full_rebuild
from papyre.pipeline.result import BuildResult
from papyre.render.dispatcher import render_entries

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from papyre._types import EntrySet, OnDone, Tree
    from papyre.bundle.artifact import Artifact
    from papyre.bundle.compiler import CompileResult
    from papyre.content.watcher import ChangeEvent


class SessionState(enum.StrEnum):
    IDLE = "idle"
    COMPILING = "compiling"
    READY = "ready"
    REBUILDING = "rebuilding"
    CLOSED = "closed"


class WatchSession:
    """One live watch-mode pipeline.

    Owns the live artifact, entry set and tree.  Sessions share nothing, so
    several can run in one process.

    Args:
        config: Compiler config mapping (or a validated CompilerConfig).
        on_done: Called as ``on_done(error, result)`` once per rebuild
            trigger; may be a coroutine function.
        collector: Event collector (a fresh one when omitted).
        compiler: Compiler to watch (built from *config* when omitted).
        content_watcher: Content watcher (built from *config* when omitted).
        verbose: Print each rebuild's timing to stderr.

    """

    def __init__(
        self,
        config: Mapping[str, Any] | CompilerConfig,
        on_done: OnDone,
        *,
        collector: StackCollector | None = None,
        compiler: TemplateCompiler | None = None,
        content_watcher: ContentWatcher | None = None,
        verbose: bool = False,
    ) -> None:
        self._config = reconfigure(config)
        if not callable(on_done):
            msg = "on_done must be callable as on_done(error, result)"
            raise ConfigError(msg)
        self._on_done = on_done
        self._collector = collector if collector is not None else StackCollector()
        self._verbose = verbose
        self._loader = ArtifactLoader.from_config(self._config)

        self.compiler = compiler or TemplateCompiler(self._config)
        self.content_watcher = content_watcher or ContentWatcher(
            self._config.entry_dir,
            code_extensions=self._config.extensions,
            debounce=self._config.debounce,
        )

        # Live state, swapped (never mutated) between rebuilds
        self._artifact: Artifact | None = None
        self._entries: EntrySet = ()
        self._tree: Tree = {}

        self._started = False
        self._ready = False
        self._closed = False
        self._building = False
        self._in_flight = 0
        self._loops: list[asyncio.Task[None]] = []
        self._tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def config(self) -> CompilerConfig:
        return self._config

    @property
    def collector(self) -> StackCollector:
        return self._collector

    @property
    def state(self) -> SessionState:
        if self._closed:
            return SessionState.CLOSED
        if not self._started:
            return SessionState.IDLE
        if not self._ready:
            return SessionState.COMPILING
        if self._in_flight:
            return SessionState.REBUILDING
        return SessionState.READY

    @property
    def building(self) -> bool:
        """Whether a full rebuild is in flight."""
        return self._building

    @property
    def artifact(self) -> Artifact | None:
        return self._artifact

    @property
    def entries(self) -> EntrySet:
        """The live, unrendered entry set."""
        return self._entries

    @property
    def tree(self) -> Tree:
        return self._tree

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the compiler watch loop.  Must run inside an event loop."""
        if self._started or self._closed:
            return
        self._started = True
        self._loops.append(
            asyncio.create_task(self._compile_loop(), name="papyre-compiler")
        )

    def close(self) -> None:
        """Stop both watchers.  In-flight rebuilds still finish and report."""
        if self._closed:
            return
        self._closed = True
        self.compiler.close()
        self.content_watcher.stop()

    deinit = close

    async def wait_closed(self) -> None:
        """Wait for the watch loops and in-flight rebuilds to finish."""
        await asyncio.gather(*self._loops, *list(self._tasks))

    async def __aenter__(self) -> WatchSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()
        await self.wait_closed()

    # ------------------------------------------------------------------
    # Event loops
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _compile_loop(self) -> None:
        try:
            async for result in self.compiler.watch():
                if self._closed:
                    break
                # Own task per event so a compile that lands mid-rebuild
                # reaches the building check instead of waiting in line.
                self._spawn(self.handle_compile(result))
        except Exception as exc:
            print(f"  Compiler watch stopped: {exc}", file=sys.stderr)
            await self._emit(exc, None)

    async def _content_loop(self) -> None:
        try:
            async for event in self.content_watcher.changes():
                if self._closed:
                    break
                self._spawn(self.handle_change(event))
        except Exception as exc:
            print(f"  Content watch stopped: {exc}", file=sys.stderr)
            await self._emit(exc, None)

    def _become_ready(self) -> None:
        if self._ready or self._closed:
            return
        self._ready = True
        self._loops.append(
            asyncio.create_task(self._content_loop(), name="papyre-content")
        )

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def handle_compile(self, result: CompileResult) -> None:
        """Handle one compiler event: full rebuild, report, or drop."""
        if self._closed:
            return
        trigger = _describe(result.changes) or str(self._config.entry)

        if not result.ok:
            self._collector.record_rebuild("full", trigger, error=result.error)
            await self._emit(result.error, None)
            return

        if self._building:
            self._collector.record_compile_dropped(trigger)
            return

        self._building = True
        self._in_flight += 1
        profiler = RebuildProfiler(self._collector.log, verbose=self._verbose)
        profiler.begin("full", trigger)
        try:
            try:
                snapshot = await full_rebuild(
                    self._config,
                    result.bundle,
                    profiler=profiler,
                    loader=self._loader,
                    collector=self._collector,
                )
            except Exception as exc:
                self._collector.record_rebuild(
                    "full", trigger, error=exc, duration_ms=profiler.elapsed_ms(),
                )
                await self._emit(exc, None)
                return

            self._artifact = snapshot.artifact
            self._entries = snapshot.entries
            self._tree = snapshot.tree
            self._collector.record_rebuild(
                "full", trigger,
                entries=len(snapshot.result.entries),
                duration_ms=profiler.elapsed_ms(),
            )
            await self._emit(None, snapshot.result)
            self._become_ready()
        finally:
            self._building = False
            self._in_flight -= 1

    async def handle_change(self, event: ChangeEvent) -> None:
        """Handle one content change: splice one entry, re-render all."""
        if self._closed or not self._ready:
            return
        if self._config.is_code_path(event.path) or event.path.is_dir():
            return
        root = self._config.entry_dir
        try:
            rel_path = relative_entry_path(root, event.path)
        except ValueError:
            return

        self._in_flight += 1
        profiler = RebuildProfiler(self._collector.log, verbose=self._verbose)
        profiler.begin("incremental", rel_path)
        try:
            try:
                result = await self._rebuild_incremental(event.path, rel_path, profiler)
            except Exception as exc:
                self._collector.record_rebuild(
                    "incremental", rel_path, error=exc, duration_ms=profiler.elapsed_ms(),
                )
                await self._emit(exc, None)
                return
            self._collector.record_rebuild(
                "incremental", rel_path,
                entries=len(result.entries),
                duration_ms=profiler.elapsed_ms(),
            )
            await self._emit(None, result)
        finally:
            self._in_flight -= 1

    async def _rebuild_incremental(
        self,
        fs_path: Path,
        rel_path: str,
        profiler: RebuildProfiler,
    ) -> BuildResult:
        profiler.start("load")
        try:
            entry = await read_entry(self._config.entry_dir, fs_path)
        except FileNotFoundError:
            entry = None
        profiler.stop("load")

        # Splice against the live set as it is now, after the read
        if entry is None:
            self._entries = remove_entry(self._entries, rel_path)
        else:
            self._entries = replace_or_append(self._entries, entry)
        entries = self._entries
        tree = entries_to_tree(entries)
        self._tree = tree

        artifact = self._artifact
        if artifact is None:
            msg = "No template artifact loaded"
            raise ConfigError(msg)

        profiler.start("render")
        output = await render_entries(entries, artifact, tree=tree, collector=self._collector)
        profiler.stop("render")

        profile = profiler.finish()
        return BuildResult(entries=output, timing=format_timing(profile), profile=profile)

    async def _emit(self, error: BaseException | None, result: BuildResult | None) -> None:
        """Invoke on_done; its own failures are logged, never propagated."""
        try:
            outcome = self._on_done(error, result)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as exc:
            print(f"  on_done callback failed: {exc}", file=sys.stderr)


def _describe(paths: frozenset[Path]) -> str:
    return ", ".join(sorted(str(p) for p in paths))


async def watch(
    config: Mapping[str, Any] | CompilerConfig,
    on_done: OnDone,
    **kwargs: Any,
) -> WatchSession:
    """Create and start a WatchSession.

    Returns the session; call ``close()`` (or ``deinit()``) to stop it.
    """
    session = WatchSession(config, on_done, **kwargs)
    await session.start()
    return session
