"""papyre CLI — papyre build / papyre watch.

Entry point for the ``papyre`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys

from papyre._errors import PapyreError


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "entry", nargs="?", default=None,
        help="Template entry module (default: from papyre.yaml or src/templates/index.py)",
    )
    parser.add_argument("--root", default=".", help="Project directory")
    parser.add_argument("--output", default=None, help="Output directory")
    parser.add_argument(
        "--rename", action="append", default=[], metavar="OLD=NEW",
        help="Rename entry path suffixes before writing, e.g. .md=.html",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the papyre CLI."""
    parser = argparse.ArgumentParser(
        prog="papyre",
        description="Render a content directory through compiled Python templates.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    build_parser = subparsers.add_parser("build", help="Render all entries once")
    _add_common(build_parser)

    watch_parser = subparsers.add_parser(
        "watch", help="Rebuild on template and content changes",
    )
    _add_common(watch_parser)

    return parser


def _get_version() -> str:
    from papyre import __version__

    return __version__


def _overrides(args: argparse.Namespace) -> dict[str, object]:
    from papyre.config_loader import parse_rename

    overrides: dict[str, object] = {"entry": args.entry, "output": args.output}
    if args.rename:
        overrides["rename"] = parse_rename(args.rename)
    return overrides


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from papyre.app import build, watch
    from papyre.banner import print_error

    try:
        if args.command == "build":
            build(args.root, **_overrides(args))
        elif args.command == "watch":
            watch(args.root, **_overrides(args))
    except PapyreError as exc:
        print_error(exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
