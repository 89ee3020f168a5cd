"""Artifact loader — execute a compiled bundle in an isolated sandbox.

Every load builds a fresh sandbox with its own module table.  Bundled
modules are never registered in ``sys.modules``, so two loads of the same
templates (or two watch sessions) never share module state.

The sandbox's ``__import__`` is the whole interface between template code
and the host:

- imports of bundled modules (absolute or relative) resolve inside the
  bundle;
- any other import goes to the real import system, but only for top-level
  names in ``allowed_imports`` (no restriction when it is None);
- ``externals`` are injected into every bundled module's globals.

The exports of the entry module (its ``__all__``, or every public global)
become the Artifact.
"""

from __future__ import annotations

import builtins
from collections.abc import Collection, Iterator, Mapping
from dataclasses import dataclass
from types import ModuleType
from typing import TYPE_CHECKING, Any

from papyre._errors import CompileError
from papyre.bundle.compiler import BUNDLE_ROOT

if TYPE_CHECKING:
    from papyre._types import RenderFunc
    from papyre.bundle.compiler import Bundle
    from papyre.config import CompilerConfig

# Always importable: compile-time directives
_ALWAYS_ALLOWED = frozenset({"__future__"})


@dataclass(frozen=True, slots=True)
class RenderLookup:
    """Result of looking up a render function by name.

    Attributes:
        name: The requested name.
        found: Whether the artifact exports anything under that name.
        value: The exported value (None when not found).
        function: The value when it is callable, else None.

    """

    name: str
    found: bool
    value: object = None
    function: RenderFunc | None = None


class Artifact(Mapping[str, object]):
    """Exported bindings of an executed template bundle.

    Read-only mapping of export name -> value.  Render functions are
    resolved through ``lookup()``.
    """

    __slots__ = ("_exports", "location")

    def __init__(self, exports: Mapping[str, object], *, location: str = "") -> None:
        self._exports = dict(exports)
        self.location = location

    def __getitem__(self, name: str) -> object:
        return self._exports[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._exports)

    def __len__(self) -> int:
        return len(self._exports)

    def __repr__(self) -> str:
        return f"Artifact({sorted(self._exports)!r}, location={self.location!r})"

    def lookup(self, name: object) -> RenderLookup:
        """Resolve *name* to a render function."""
        if not isinstance(name, str) or name not in self._exports:
            return RenderLookup(name=str(name), found=False)
        value = self._exports[name]
        function = value if callable(value) else None
        return RenderLookup(name=name, found=True, value=value, function=function)


class ArtifactLoader:
    """Loads Bundles into Artifacts.

    Args:
        externals: Names injected into every bundled module's globals.
        allowed_imports: Top-level host modules templates may import, or
            None to allow any.

    """

    def __init__(
        self,
        externals: Mapping[str, object] | None = None,
        allowed_imports: Collection[str] | None = None,
    ) -> None:
        self._externals = dict(externals or {})
        self._allowed = (
            frozenset(allowed_imports) | _ALWAYS_ALLOWED
            if allowed_imports is not None
            else None
        )

    @classmethod
    def from_config(cls, config: CompilerConfig) -> ArtifactLoader:
        return cls(externals=config.externals, allowed_imports=config.allowed_imports)

    def load(self, bundle: Bundle) -> Artifact:
        """Execute *bundle* in a fresh sandbox and return its exports.

        Raises:
            CompileError: If evaluating any bundled module raises or exits.

        """
        sandbox = _Sandbox(bundle, self._externals, self._allowed)
        try:
            module = sandbox.load(bundle.entry)
        except (Exception, SystemExit) as exc:
            msg = f"Failed to evaluate template bundle at {bundle.location}: {exc}"
            raise CompileError(msg) from exc
        return Artifact(_exports_of(module), location=bundle.location)


def _exports_of(module: ModuleType) -> dict[str, object]:
    namespace = vars(module)
    names = namespace.get("__all__")
    if names is None:
        names = [n for n in namespace if not n.startswith("_")]
    return {name: namespace[name] for name in names if name in namespace}


class _Sandbox:
    """Private module table and import hook for one bundle load."""

    def __init__(
        self,
        bundle: Bundle,
        externals: Mapping[str, object],
        allowed: frozenset[str] | None,
    ) -> None:
        self._bundle = bundle
        self._externals = externals
        self._allowed = allowed
        self._modules: dict[str, ModuleType] = {}
        self._builtins: dict[str, Any] = dict(vars(builtins))
        self._builtins["__import__"] = self._import

    def has(self, name: str) -> bool:
        """Whether *name* is a bundled module or (implicit) package."""
        if name == BUNDLE_ROOT or name in self._bundle.modules:
            return True
        prefix = name + "."
        return any(m.startswith(prefix) for m in self._bundle.modules)

    def is_package(self, name: str) -> bool:
        if name == BUNDLE_ROOT or name in self._bundle.packages:
            return True
        prefix = name + "."
        return any(m.startswith(prefix) for m in self._bundle.modules)

    def load(self, name: str) -> ModuleType:
        """Load bundled module *name* (and its parents) once per sandbox."""
        module = self._modules.get(name)
        if module is not None:
            return module
        if not self.has(name):
            msg = f"No module named {name!r} in template bundle"
            raise ImportError(msg, name=name)

        parent_name, _, child = name.rpartition(".")
        parent = self.load(parent_name) if parent_name else None

        module = ModuleType(name)
        namespace = vars(module)
        namespace["__builtins__"] = self._builtins
        namespace.update(self._externals)
        if self.is_package(name):
            module.__path__ = []
            module.__package__ = name
        else:
            module.__package__ = parent_name

        # Registered before execution so import cycles see the partial module
        self._modules[name] = module
        code = self._bundle.modules.get(name)
        if code is not None:
            module.__file__ = code.co_filename
            try:
                exec(code, namespace)  # noqa: S102
            except BaseException:
                del self._modules[name]
                raise

        if parent is not None:
            setattr(parent, child, module)
        return module

    def _import(
        self,
        name: str,
        globals: Mapping[str, Any] | None = None,  # noqa: A002
        locals: Mapping[str, Any] | None = None,  # noqa: A002
        fromlist: Collection[str] | None = (),
        level: int = 0,
    ) -> ModuleType:
        if level > 0:
            package = (globals or {}).get("__package__") or ""
            absolute = _resolve_relative(name, package, level)
            top = None
        elif self.has(name):
            absolute = name
            top = name.partition(".")[0]
        elif self.has(f"{BUNDLE_ROOT}.{name}"):
            absolute = f"{BUNDLE_ROOT}.{name}"
            top = f"{BUNDLE_ROOT}.{name.partition('.')[0]}"
        else:
            return self._import_host(name, globals, locals, fromlist, level)

        module = self.load(absolute)
        if fromlist:
            for attr in fromlist:
                sub = f"{absolute}.{attr}"
                if attr != "*" and not hasattr(module, attr) and self.has(sub):
                    self.load(sub)
            return module
        if top is None:
            return module
        return self._modules[top]

    def _import_host(
        self,
        name: str,
        globals: Mapping[str, Any] | None,  # noqa: A002
        locals: Mapping[str, Any] | None,  # noqa: A002
        fromlist: Collection[str] | None,
        level: int,
    ) -> ModuleType:
        top = name.partition(".")[0]
        if self._allowed is not None and top not in self._allowed:
            msg = f"Template bundle may not import {name!r}"
            raise ImportError(msg, name=name)
        return builtins.__import__(name, globals, locals, fromlist or (), level)


def _resolve_relative(name: str, package: str, level: int) -> str:
    """Absolute module name for a relative import inside the bundle."""
    bits = package.rsplit(".", level - 1)
    if not package or len(bits) < level:
        msg = "attempted relative import beyond top-level template package"
        raise ImportError(msg)
    base = bits[0]
    absolute = f"{base}.{name}" if name else base
    if absolute != BUNDLE_ROOT and not absolute.startswith(BUNDLE_ROOT + "."):
        msg = f"relative import {name!r} escapes the template bundle"
        raise ImportError(msg)
    return absolute
