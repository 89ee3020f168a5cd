"""Render dispatcher — run each entry through its named render function.

An entry opts into rendering with ``papyre.fn`` in its metadata::

    ---
    title: Home
    papyre: {fn: html, layout: Index}
    ---

Entries without ``papyre.fn`` pass through unchanged.  For the rest, the
function is looked up in the current Artifact, called with a RenderContext,
awaited if it returns an awaitable, and its string result becomes the body.

All renders of a pass are issued concurrently and all of them run to
completion.  The pass is all-or-nothing: if any entry fails, the first
failure in entry-set order is raised and no rendered entries are returned.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from papyre._errors import PapyreError, RenderError, RenderFunctionMissing, RenderOutputError
from papyre.content.tree import entries_to_tree

if TYPE_CHECKING:
    from papyre._types import EntrySet, RenderFunc, Tree
    from papyre.bundle.artifact import Artifact
    from papyre.content.entry import Entry
    from papyre.observability.collector import StackCollector


@dataclass(frozen=True, slots=True)
class RenderContext:
    """Everything a render function sees.

    ``entries`` and ``tree`` are shared by every render of a pass and must
    be treated as read-only.

    Attributes:
        entry: The entry being rendered (with its raw body).
        entries: The full current entry set, unrendered.
        tree: Nested view of ``entries`` keyed by path segments.

    """

    entry: Entry
    entries: EntrySet
    tree: Tree


def find_render_function(entry: Entry, artifact: Artifact) -> RenderFunc | None:
    """Resolve the entry's ``papyre.fn``, or None when it names none.

    Raises:
        RenderFunctionMissing: If the name is not exported or the export is
            not callable.

    """
    name = entry.render_function_name
    if not name:
        return None
    found = artifact.lookup(name)
    if found.function is None:
        raise RenderFunctionMissing(entry.path, name, found.value)
    return found.function


async def render_entry(entry: Entry, artifact: Artifact, entries: EntrySet, tree: Tree) -> Entry:
    """Render a single entry against the current entry set and tree.

    Raises:
        RenderFunctionMissing: If ``papyre.fn`` cannot be resolved.
        RenderOutputError: If the function's result is not a string.
        RenderError: If the function itself raises.

    """
    function = find_render_function(entry, artifact)
    if function is None:
        return entry

    fn_name = str(entry.render_function_name)
    context = RenderContext(entry=entry, entries=entries, tree=tree)
    try:
        result: Any = function(context)
        if inspect.isawaitable(result):
            result = await result
    except PapyreError:
        raise
    except Exception as exc:
        raise RenderError(entry.path, f"{fn_name}: {exc}") from exc

    if not isinstance(result, str):
        raise RenderOutputError(entry.path, fn_name, result)
    return entry.with_body(result)


async def render_entries(
    entries: EntrySet,
    artifact: Artifact,
    *,
    tree: Tree | None = None,
    collector: StackCollector | None = None,
) -> tuple[Entry, ...]:
    """Render every entry; return rendered entries in input order.

    *tree* defaults to a fresh tree built from *entries*.

    Raises:
        RenderError: The first failure in entry-set order.

    """
    entries = tuple(entries)
    if tree is None:
        tree = entries_to_tree(entries)
    results = await asyncio.gather(
        *(render_entry(entry, artifact, entries, tree) for entry in entries),
        return_exceptions=True,
    )

    rendered: list[Entry] = []
    for result in results:
        if isinstance(result, BaseException):
            raise result
        rendered.append(result)

    if collector is not None:
        count = sum(1 for e in entries if e.render_function_name)
        collector.record_render(entries=len(entries), rendered=count)
    return tuple(rendered)
