"""Load ProjectConfig from papyre.yaml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from papyre._errors import ConfigError
from papyre.config import ProjectConfig

_PROJECT_KEYS = frozenset({"entry", "output", "rename", "compiler"})


def load_config(root: Path, **overrides: object) -> ProjectConfig:
    """Load ProjectConfig from root, optionally merging papyre.yaml.

    Looks for papyre.yaml, papyre.yml, or papyre.toml in root. If found, loads
    and merges with overrides. Overrides that are None are ignored so CLI
    defaults never mask the file.

    Raises:
        ConfigError: If the project file cannot be read or parsed.

    """
    file_config = _read_project_config(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    for key in ("entry", "output"):
        if key in merged and not isinstance(merged[key], Path):
            merged[key] = Path(str(merged[key]))
    if "rename" in merged:
        merged["rename"] = _normalize_rename(merged["rename"])
    return ProjectConfig(root=root, **merged)


def parse_rename(pairs: list[str]) -> dict[str, str]:
    """Parse CLI ``.md=.html`` pairs into a suffix mapping."""
    result: dict[str, str] = {}
    for pair in pairs:
        old, sep, new = pair.partition("=")
        if not sep or not old:
            msg = f"Invalid rename {pair!r}, expected OLD=NEW (e.g. .md=.html)"
            raise ConfigError(msg)
        result[old] = new
    return result


def _read_project_config(root: Path) -> dict[str, object]:
    """Read project config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("papyre.yaml", "papyre.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "papyre.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_papyre_section(data, path)


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_papyre_section(data, path)


def _flatten_papyre_section(data: object, path: Path) -> dict[str, object]:
    """Extract papyre.* keys into top-level config.

    Unknown top-level keys are compiler options.
    """
    if not isinstance(data, dict):
        msg = f"{path}: expected a mapping at the top level"
        raise ConfigError(msg)
    section = data.get("papyre")
    source = dict(section) if isinstance(section, dict) else {
        k: v for k, v in data.items() if k != "papyre"
    }

    result: dict[str, object] = {}
    compiler: dict[str, object] = {}
    for k, v in source.items():
        if k in _PROJECT_KEYS:
            result[k] = v
        else:
            compiler[k] = v
    if compiler:
        existing = result.get("compiler")
        result["compiler"] = {**compiler, **(existing if isinstance(existing, dict) else {})}
    return result


def _normalize_rename(value: object) -> dict[str, str]:
    if isinstance(value, dict):
        return {str(k): str(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return parse_rename([str(v) for v in value])
    msg = f"'rename' must be a mapping or a list of OLD=NEW pairs, got {value!r}"
    raise ConfigError(msg)
