"""Template compiler — template modules to an in-memory bundle.

Compiles the template entry module and every other code file in its
directory into a Bundle of code objects.  Nothing is written to disk: the
bundle is emitted to a virtual location (``CompilerConfig.output_path``)
in the compiler's in-memory output table, and no bytecode cache is used.

Module naming mirrors the directory layout under a synthetic root package::

    templates/index.py            -> papyre_bundle.index
    templates/layouts.py          -> papyre_bundle.layouts
    templates/partials/nav.py     -> papyre_bundle.partials.nav
    templates/partials/__init__.py -> papyre_bundle.partials  (package)

``watch()`` turns the compiler into a self-watching event source: it yields
one CompileResult for the initial compile and one per batch of code changes.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from types import CodeType
from typing import TYPE_CHECKING

from watchfiles import Change, awatch

from papyre._errors import CompileError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    from papyre.config import CompilerConfig

BUNDLE_ROOT = "papyre_bundle"
_INIT_STEM = "__init__"


@dataclass(frozen=True, slots=True)
class Bundle:
    """Compiled, not yet executed, template code.

    Attributes:
        entry: Dotted name of the entry module.
        modules: Dotted module name -> compiled code object.
        packages: Names compiled from ``__init__`` files.
        location: Virtual path the bundle was emitted to.
        compile_ms: Time spent compiling.

    """

    entry: str
    modules: Mapping[str, CodeType]
    packages: frozenset[str] = frozenset()
    location: str = ""
    compile_ms: float = 0.0


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Outcome of one compilation, as yielded by ``TemplateCompiler.watch()``.

    Attributes:
        bundle: The compiled bundle, or None on failure.
        error: The failure, or None on success.
        changes: Code files whose change triggered this compilation
            (empty for the initial compile).

    """

    bundle: Bundle | None = None
    error: CompileError | None = None
    changes: frozenset[Path] = field(default_factory=frozenset)

    @property
    def ok(self) -> bool:
        return self.error is None and self.bundle is not None


def module_name_for(path: Path, root: Path) -> tuple[str, bool]:
    """Dotted bundle module name for a code file, and whether it is a package."""
    parts = list(path.relative_to(root).with_suffix("").parts)
    is_package = parts[-1] == _INIT_STEM
    if is_package:
        parts.pop()
    return ".".join([BUNDLE_ROOT, *parts]), is_package


class TemplateCompiler:
    """Compiles a template directory into Bundles, once or continuously.

    Args:
        config: Validated compiler configuration (see ``reconfigure()``).

    """

    def __init__(self, config: CompilerConfig) -> None:
        self._config = config
        self._stop_event = asyncio.Event()
        # Virtual output filesystem: location -> most recent bundle
        self.output: dict[str, Bundle] = {}

    @property
    def config(self) -> CompilerConfig:
        return self._config

    @property
    def is_closed(self) -> bool:
        return self._stop_event.is_set()

    def close(self) -> None:
        """Stop the watch loop.  ``watch()`` ends shortly after."""
        self._stop_event.set()

    def read_output(self) -> Bundle:
        """Return the bundle last emitted to the configured location.

        Raises:
            CompileError: If nothing has been emitted yet.

        """
        try:
            return self.output[self._config.output_path]
        except KeyError:
            msg = f"No bundle emitted at {self._config.output_path}"
            raise CompileError(msg) from None

    async def run(self) -> Bundle:
        """Compile once and return the bundle.

        Raises:
            CompileError: If a template file is missing, unreadable, or has
                a syntax error.

        """
        bundle = await asyncio.to_thread(self._compile)
        self.output[bundle.location] = bundle
        return bundle

    async def watch(self) -> AsyncIterator[CompileResult]:
        """Yield a CompileResult now and after every batch of code changes.

        Failures are yielded, not raised, so the loop survives a bad save.
        Ends when ``close()`` is called.
        """
        yield await self._result(frozenset())

        async for raw_changes in awatch(
            self._config.entry_dir,
            watch_filter=self._filter,
            stop_event=self._stop_event,
            debounce=self._config.debounce,
            step=50,
        ):
            yield await self._result(frozenset(Path(p) for _, p in raw_changes))

    async def _result(self, changes: frozenset[Path]) -> CompileResult:
        try:
            bundle = await self.run()
        except CompileError as exc:
            return CompileResult(error=exc, changes=changes)
        return CompileResult(bundle=bundle, changes=changes)

    def _filter(self, change: Change, path: str) -> bool:
        p = Path(path)
        return self._config.is_code_path(p) and "__pycache__" not in p.parts

    def _code_files(self) -> list[Path]:
        root = self._config.entry_dir
        files: set[Path] = {self._config.entry}
        for ext in self._config.extensions:
            for path in root.rglob(f"*{ext}"):
                rel_parts = path.relative_to(root).parts
                if any(part.startswith(".") or part == "__pycache__" for part in rel_parts):
                    continue
                if path.is_file():
                    files.add(path)
        return sorted(files)

    def _compile(self) -> Bundle:
        t0 = time.perf_counter()
        root = self._config.entry_dir

        modules: dict[str, CodeType] = {}
        packages: set[str] = set()
        for path in self._code_files():
            name, is_package = module_name_for(path, root)
            try:
                source = path.read_text(encoding="utf-8")
                modules[name] = compile(
                    source,
                    str(path),
                    "exec",
                    dont_inherit=True,
                    optimize=self._config.optimize,
                )
            except (OSError, UnicodeDecodeError, SyntaxError, ValueError) as exc:
                msg = f"Failed to compile template module {path}: {exc}"
                raise CompileError(msg) from exc
            if is_package:
                packages.add(name)

        entry, _ = module_name_for(self._config.entry, root)
        return Bundle(
            entry=entry,
            modules=modules,
            packages=frozenset(packages),
            location=self._config.output_path,
            compile_ms=(time.perf_counter() - t0) * 1000,
        )
