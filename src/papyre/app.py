"""papyre application — project-level build and watch.

The two public functions (build, watch) load a ProjectConfig, run the
pipeline and write rendered entries to the output directory.  They are
the CLI's entry points and the simplest way to use papyre from a script.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from papyre.banner import print_banner, print_error, print_result
from papyre.config_loader import load_config
from papyre.export.writer import rename_entries, write_entries
from papyre.observability import EventLog, StackCollector
from papyre.pipeline.build import build as build_entries
from papyre.pipeline.watch import WatchSession

if TYPE_CHECKING:
    from papyre.config import ProjectConfig
    from papyre.export.writer import WriteResult
    from papyre.pipeline.result import BuildResult


async def _write_result(
    config: ProjectConfig,
    result: BuildResult,
    collector: StackCollector,
) -> WriteResult:
    entries = rename_entries(result.entries, config.rename)
    return await write_entries(config.output_path, entries, collector=collector)


async def build_project(config: ProjectConfig, collector: StackCollector) -> WriteResult:
    """Build once and write the output.  Errors propagate."""
    result = await build_entries(config.compiler_config(), collector=collector)
    written = await _write_result(config, result, collector)
    print_result(result, written)
    return written


async def watch_project(
    config: ProjectConfig,
    collector: StackCollector,
    *,
    stop: asyncio.Event | None = None,
) -> None:
    """Rebuild and rewrite the output on every change until *stop* is set.

    Runs forever (until cancelled) when *stop* is None.
    """

    async def on_done(error: BaseException | None, result: BuildResult | None) -> None:
        if error is not None:
            print_error(error)
            return
        assert result is not None
        try:
            written = await _write_result(config, result, collector)
        except Exception as exc:
            print_error(exc)
            return
        print_result(result, written)

    stop = stop or asyncio.Event()
    async with WatchSession(config.compiler_config(), on_done, collector=collector):
        await stop.wait()


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def build(root: str | Path = ".", **kwargs: object) -> WriteResult:
    """Render every entry once and write them to the output directory.

    Args:
        root: Project directory (holds ``papyre.yaml``, if any).
        **kwargs: Override ProjectConfig fields.

    Raises:
        PapyreError: If any stage fails; nothing is written in that case.

    """
    config = load_config(Path(root), **kwargs)
    print_banner(config, mode="build")
    collector = StackCollector(EventLog())
    return asyncio.run(build_project(config, collector))


def watch(root: str | Path = ".", **kwargs: object) -> None:
    """Watch templates and content and rewrite the output on every change.

    Runs until interrupted (Ctrl+C).

    Args:
        root: Project directory (holds ``papyre.yaml``, if any).
        **kwargs: Override ProjectConfig fields.

    """
    config = load_config(Path(root), **kwargs)
    print_banner(config, mode="watch")
    collector = StackCollector(EventLog())
    try:
        asyncio.run(watch_project(config, collector))
    except KeyboardInterrupt:
        pass
