"""Entry tree builder — hierarchical navigation over an entry set.

Turns a flat entry set into nested dicts keyed by path segments::

    (Entry("index.md"), Entry("docs/intro.md"), Entry("docs/api/ref.md"))

    {
        "index.md": Entry("index.md"),
        "docs": {
            "intro.md": Entry("docs/intro.md"),
            "api": {"ref.md": Entry("docs/api/ref.md")},
        },
    }

The tree is rebuilt from scratch for every render pass and never patched.

Collisions are last-write-wins in entry-set order: a later entry with the
same full path replaces the earlier leaf, and a later entry that needs a
directory where a leaf sits (or a leaf where a directory sits) replaces it.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from papyre.content.entry import Entry

if TYPE_CHECKING:
    from papyre._types import Tree

SEPARATOR = "/"


def entries_to_tree(entries: Iterable[Entry]) -> Tree:
    """Build a fresh tree from *entries*."""
    tree: Tree = {}
    for entry in entries:
        _set_in(tree, entry.path.split(SEPARATOR), entry)
    return tree


def lookup(tree: Tree, path: str) -> Any:
    """Return the node at *path* (an Entry or a nested dict).

    Raises:
        KeyError: If any segment of *path* is missing.

    """
    node: Any = tree
    for key in path.split(SEPARATOR):
        if not isinstance(node, dict):
            raise KeyError(path)
        node = node[key]
    return node


def _set_in(ref: dict[str, Any], keys: list[str], value: Entry) -> None:
    for key in keys[:-1]:
        if not isinstance(ref.get(key), dict):
            ref[key] = {}
        ref = ref[key]
    ref[keys[-1]] = value
