"""Startup banner and result lines for the CLI.

Detects ``NO_COLOR`` / ``TERM`` for safe fallback to plain text.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from papyre.config import ProjectConfig
    from papyre.export.writer import WriteResult
    from papyre.pipeline.result import BuildResult


# ---------------------------------------------------------------------------
# ANSI helpers — respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""
_RED = "\033[31m" if _COLOR else ""

_MODE_STYLES: dict[str, tuple[str, str]] = {
    "build": (_YELLOW, "build"),
    "watch": (_GREEN, "watch"),
}


def _mode_badge(mode: str) -> str:
    color, label = _MODE_STYLES.get(mode, (_DIM, mode))
    return f"{color}[{label}]{_RESET}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def print_banner(config: ProjectConfig, mode: str) -> None:
    """Print the papyre startup banner to stderr.

    Args:
        config: Resolved ProjectConfig.
        mode: One of ``"build"``, ``"watch"``.

    """
    from papyre import __version__

    lines: list[str] = [
        "",
        f"  {_BOLD}papyre{_RESET} {_DIM}v{__version__}{_RESET}  {_mode_badge(mode)}",
        f"  {_DIM}{'─' * 43}{_RESET}",
        f"  {_DIM}├─{_RESET} templates: {_DIM}{config.entry_path}{_RESET}",
        f"  {_DIM}├─{_RESET} content: {_DIM}{config.entry_path.parent}{_RESET}",
    ]
    if config.rename:
        renames = ", ".join(f"{k} -> {v}" for k, v in sorted(config.rename.items()))
        lines.append(f"  {_DIM}├─{_RESET} rename: {renames}")
    lines.append(f"  {_DIM}└─{_RESET} output: {_DIM}{config.output_path}{_RESET}")

    if mode == "watch":
        lines.append("")
        lines.append(f"  {_DIM}Watching for changes...{_RESET}")

    lines.append("")
    print("\n".join(lines), file=sys.stderr)


def print_result(result: BuildResult, written: WriteResult) -> None:
    """Print one line per completed build or rebuild."""
    count = len(written.files)
    files = "file" if count == 1 else "files"
    print(
        f"  {_GREEN}✓{_RESET} {result.timing} {_DIM}— wrote {count} {files}{_RESET}",
        file=sys.stderr,
    )


def print_error(error: BaseException) -> None:
    """Print a rebuild failure, including its cause when chained."""
    print(f"  {_RED}✗{_RESET} {type(error).__name__}: {error}", file=sys.stderr)
    cause = error.__cause__
    if cause is not None:
        print(f"    {_DIM}caused by {type(cause).__name__}: {cause}{_RESET}", file=sys.stderr)
