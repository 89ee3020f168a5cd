"""Render layer — dispatch entries to compiled render functions."""

from papyre.render.dispatcher import (
    RenderContext,
    find_render_function,
    render_entries,
    render_entry,
)

__all__ = ["RenderContext", "find_render_function", "render_entries", "render_entry"]
