"""Shared test fixtures for papyre."""

from __future__ import annotations

from pathlib import Path

import pytest

INDEX_TEMPLATE = '''\
from __future__ import annotations

from .layouts import page

__all__ = ["html", "listing", "shout"]


def html(ctx):
    return page(ctx.entry.get("title", ""), ctx.entry.body)


def listing(ctx):
    return ",".join(sorted(e.path for e in ctx.entries))


async def shout(ctx):
    return ctx.entry.body.upper()
'''

LAYOUTS_TEMPLATE = '''\
def page(title, body):
    return f"<h1>{title}</h1>\\n{body}"
'''


def write(path: Path, text: str) -> Path:
    """Write *text* to *path*, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def tmp_site(tmp_path: Path) -> Path:
    """Create a minimal papyre project for testing.

    Returns the project root.  Templates and content share
    ``src/templates/``, the default entry directory::

        src/templates/index.py        html, listing, shout
        src/templates/layouts.py      page()
        src/templates/index.md        fn: html
        src/templates/docs/intro.md   fn: html
        src/templates/data.json       no render function
        src/templates/site.yml        no render function
    """
    templates = tmp_path / "src" / "templates"
    write(templates / "index.py", INDEX_TEMPLATE)
    write(templates / "layouts.py", LAYOUTS_TEMPLATE)
    write(
        templates / "index.md",
        "---\ntitle: Home\npapyre:\n  fn: html\n---\n# Welcome\n",
    )
    write(
        templates / "docs" / "intro.md",
        "---\ntitle: Intro\npapyre:\n  fn: html\n---\nGetting started.\n",
    )
    write(templates / "data.json", '{"title": "Data", "count": 3}')
    write(templates / "site.yml", "name: Example\n")
    return tmp_path


@pytest.fixture
def templates_dir(tmp_site: Path) -> Path:
    """The entry directory of ``tmp_site``."""
    return (tmp_site / "src" / "templates").resolve()


@pytest.fixture
def compiler_config(templates_dir: Path) -> dict[str, object]:
    """Caller-level compiler config for ``tmp_site``."""
    return {"entry": templates_dir / "index.py"}
