"""Shared type definitions for papyre."""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from papyre.content.entry import Entry
    from papyre.pipeline.result import BuildResult
    from papyre.render.dispatcher import RenderContext

# Ordered entry set
EntrySet: TypeAlias = "tuple[Entry, ...]"

# Nested mapping of path segments; leaves are entries
Tree: TypeAlias = dict[str, Any]

# Render function exported by a compiled template bundle
RenderFunc: TypeAlias = "Callable[[RenderContext], str | Awaitable[str]]"

# Completion callback: (error, result); may be sync or async
OnDone: TypeAlias = "Callable[[BaseException | None, BuildResult | None], Awaitable[None] | None]"
