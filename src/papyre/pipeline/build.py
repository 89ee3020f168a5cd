"""Build orchestrator — one-shot compile, load, render.

Pipeline order:
    1. Validate and reconfigure the compiler config
    2. Compile the template directory into an in-memory bundle
    3. Evaluate the bundle into an artifact
    4. Read every content file beside the entry module
    5. Render all entries

Any failure propagates to the caller; nothing is written anywhere.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from papyre.bundle.artifact import ArtifactLoader
from papyre.bundle.compiler import TemplateCompiler
from papyre.config import CompilerConfig, reconfigure
from papyre.content.entry import read_entries
from papyre.content.tree import entries_to_tree
from papyre.observability.profiler import RebuildProfiler, format_timing
from papyre.pipeline.result import BuildResult, Snapshot
from papyre.render.dispatcher import render_entries

if TYPE_CHECKING:
    from papyre.bundle.compiler import Bundle
    from papyre.observability.collector import StackCollector


async def full_rebuild(
    config: CompilerConfig,
    bundle: Bundle,
    *,
    profiler: RebuildProfiler,
    loader: ArtifactLoader | None = None,
    collector: StackCollector | None = None,
) -> Snapshot:
    """Evaluate *bundle*, reload every entry and render them.

    Shared by ``build()`` and the watch session's compiler handler.

    Raises:
        CompileError: If the bundle fails to evaluate.
        ParseError: If any content file is malformed.
        RenderError: If any entry fails to render.

    """
    loader = loader or ArtifactLoader.from_config(config)
    profiler.record("compile", bundle.compile_ms)

    profiler.start("eval")
    artifact = loader.load(bundle)
    profiler.stop("eval")
    if collector is not None:
        collector.record_artifact(
            bundle.location, exports=len(artifact), eval_ms=profiler.stage_ms("eval")
        )

    profiler.start("load")
    entries = await read_entries(config.entry_dir, exclude_extensions=config.extensions)
    profiler.stop("load")
    if collector is not None:
        collector.record_load(
            str(config.entry_dir), count=len(entries), load_ms=profiler.stage_ms("load")
        )

    tree = entries_to_tree(entries)
    profiler.start("render")
    output = await render_entries(entries, artifact, tree=tree, collector=collector)
    profiler.stop("render")

    profile = profiler.finish()
    result = BuildResult(entries=output, timing=format_timing(profile), profile=profile)
    return Snapshot(artifact=artifact, entries=entries, tree=tree, result=result)


async def build(
    config: Mapping[str, Any] | CompilerConfig,
    *,
    collector: StackCollector | None = None,
    verbose: bool = False,
) -> BuildResult:
    """Compile the templates once and render every entry.

    Args:
        config: Compiler config mapping with a required ``entry``.
        collector: Optional event collector.
        verbose: Print the stage timing to stderr.

    Raises:
        ConfigError: If *config* is invalid.
        CompileError: If compilation or evaluation fails.
        ParseError: If a content file is malformed.
        RenderError: If any entry fails to render.

    """
    compiler_config = reconfigure(config)
    trigger = str(compiler_config.entry)
    profiler = RebuildProfiler(collector.log if collector else None, verbose=verbose)
    profiler.begin("full", trigger)

    try:
        bundle = await TemplateCompiler(compiler_config).run()
        snapshot = await full_rebuild(
            compiler_config, bundle, profiler=profiler, collector=collector,
        )
    except Exception as exc:
        if collector is not None:
            collector.record_rebuild(
                "full", trigger, error=exc, duration_ms=profiler.elapsed_ms(),
            )
        raise

    if collector is not None:
        collector.record_rebuild(
            "full", trigger,
            entries=len(snapshot.result.entries),
            duration_ms=profiler.elapsed_ms(),
        )
    return snapshot.result


def build_sync(config: Mapping[str, Any] | CompilerConfig, **kwargs: Any) -> BuildResult:
    """Blocking wrapper around ``build()`` for scripts and the CLI."""
    return asyncio.run(build(config, **kwargs))
