"""Papyre configuration.

CompilerConfig is the validated template-compiler configuration, frozen
after creation.  ``reconfigure()`` builds it from a caller mapping with
three-layer precedence::

    COMPILER_DEFAULTS  <  caller config  <  COMPILER_OVERRIDES

The overrides fix where and how the bundle is emitted; artifact loading
depends on them, so callers cannot change them.

ProjectConfig holds the CLI-level settings (output directory, renames).
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Any

from papyre._errors import ConfigError

COMPILER_DEFAULTS: Mapping[str, Any] = MappingProxyType({
    "extensions": (".py",),
    "optimize": -1,
    "debounce": 300,
    "allowed_imports": None,
    "externals": None,
})

# Emit into an in-memory location as a plain module, never via .pyc files.
COMPILER_OVERRIDES: Mapping[str, Any] = MappingProxyType({
    "output_dir": "/memory-fs/",
    "output_name": "papyre_bundle.py",
    "target": "module",
    "cache": False,
})

_KNOWN_FIELDS = frozenset({
    "entry",
    *COMPILER_DEFAULTS,
    *COMPILER_OVERRIDES,
})


@dataclass(frozen=True, slots=True)
class CompilerConfig:
    """Validated configuration for the template compiler.

    Attributes:
        entry: Absolute path to the template entry module.  Its directory is
            both the template directory and the content root.
        extensions: File extensions that belong to the compiler, not content.
        optimize: Optimization level passed to ``compile()``.
        debounce: Watch debounce in milliseconds.
        allowed_imports: Top-level module names compiled templates may import
            from the host, or None for no restriction.
        externals: Names injected into every compiled module's globals.
        output_dir: Virtual directory the bundle is emitted to.
        output_name: Virtual file name of the emitted bundle.
        target: Artifact format.  Only ``"module"`` is supported.
        cache: Whether compiled bytecode may be cached on disk.
        options: Caller options papyre does not interpret, passed through.

    """

    entry: Path
    extensions: tuple[str, ...] = (".py",)
    optimize: int = -1
    debounce: int = 300
    allowed_imports: frozenset[str] | None = None
    externals: Mapping[str, object] = field(default_factory=dict)
    output_dir: str = COMPILER_OVERRIDES["output_dir"]
    output_name: str = COMPILER_OVERRIDES["output_name"]
    target: str = COMPILER_OVERRIDES["target"]
    cache: bool = False
    options: Mapping[str, object] = field(default_factory=dict)

    @property
    def entry_dir(self) -> Path:
        """Directory holding the entry module; also the content root."""
        return self.entry.parent

    @property
    def output_path(self) -> str:
        """Virtual location the compiled bundle is written to."""
        return str(PurePosixPath(self.output_dir) / self.output_name)

    def is_code_path(self, path: Path | str) -> bool:
        """Whether *path* is template code (the compiler's concern)."""
        return Path(path).suffix in self.extensions


def validate_config(config: object) -> None:
    """Check that *config* names a single entry file inside a directory.

    Raises:
        ConfigError: If *config* is not a mapping, has no single ``entry``
            path, or the entry is not located in a directory.

    """
    if isinstance(config, CompilerConfig):
        return
    if not isinstance(config, Mapping):
        msg = "Please pass a compiler config mapping"
        raise ConfigError(msg)
    entry = config.get("entry")
    if not isinstance(entry, (str, Path)) or not str(entry):
        msg = "Please pass a compiler config with a single entry file"
        raise ConfigError(msg)
    if not Path(entry).parent.parts or str(Path(entry).parent) == ".":
        msg = f"The entry file must be located in a directory, got {str(entry)!r}"
        raise ConfigError(msg)


def reconfigure(config: Mapping[str, Any] | CompilerConfig) -> CompilerConfig:
    """Merge defaults, caller config and overrides into a CompilerConfig.

    Raises:
        ConfigError: If the config is invalid.

    """
    validate_config(config)
    if isinstance(config, CompilerConfig):
        return config

    merged: dict[str, Any] = {**COMPILER_DEFAULTS, **config, **COMPILER_OVERRIDES}

    extensions = merged["extensions"]
    if isinstance(extensions, str) or not all(isinstance(e, str) for e in extensions):
        msg = f"'extensions' must be a list of strings, got {extensions!r}"
        raise ConfigError(msg)
    entry = Path(merged["entry"])
    if entry.suffix not in extensions:
        msg = f"The entry file must have one of the extensions {list(extensions)}, got {entry.name!r}"
        raise ConfigError(msg)

    allowed = merged["allowed_imports"]
    externals = merged["externals"] or {}
    if not isinstance(externals, Mapping):
        msg = f"'externals' must be a mapping, got {type(externals).__name__}"
        raise ConfigError(msg)

    return CompilerConfig(
        entry=entry.resolve(),
        extensions=tuple(extensions),
        optimize=int(merged["optimize"]),
        debounce=int(merged["debounce"]),
        allowed_imports=frozenset(allowed) if allowed is not None else None,
        externals=dict(externals),
        output_dir=merged["output_dir"],
        output_name=merged["output_name"],
        target=merged["target"],
        cache=bool(merged["cache"]),
        options={k: v for k, v in merged.items() if k not in _KNOWN_FIELDS},
    )


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Configuration for a papyre project run from the CLI.

    Attributes:
        root: Project directory (holds ``papyre.yaml``).  Always resolved to
            an absolute path on construction.
        entry: Template entry module, relative to root unless absolute.
        output: Output directory for rendered entries.
        rename: Suffix renames applied before writing, e.g. ``{".md": ".html"}``.
        compiler: Extra compiler options (see ``COMPILER_DEFAULTS``).

    """

    root: Path = field(default_factory=Path.cwd)
    entry: Path = field(default_factory=lambda: Path("src/templates/index.py"))
    output: Path = field(default_factory=lambda: Path("public"))
    rename: Mapping[str, str] = field(default_factory=dict)
    compiler: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())

    @property
    def entry_path(self) -> Path:
        """Absolute path to the template entry module."""
        if self.entry.is_absolute():
            return self.entry
        return self.root / self.entry

    @property
    def output_path(self) -> Path:
        """Absolute path to output directory."""
        if self.output.is_absolute():
            return self.output
        return self.root / self.output

    def compiler_config(self) -> dict[str, Any]:
        """Caller-level compiler config mapping for ``reconfigure()``."""
        return {**self.compiler, "entry": self.entry_path}
