"""papyre — render a content directory through compiled Python templates.

Templates are plain Python modules.  Content files (front matter + body,
JSON or YAML) name the template function that renders them::

    ---
    title: Home
    papyre: {fn: html}
    ---
    # Welcome

Quick start::

    import papyre

    result = papyre.build_sync({"entry": "src/templates/index.py"})
    for entry in result.entries:
        print(entry.path, len(entry.body))

Watch mode::

    async def on_done(error, result):
        ...

    session = await papyre.watch({"entry": "src/templates/index.py"}, on_done)
    ...
    session.close()

"""

# PEP 703: Declare this module as free-threading safe
_Py_mod_gil = 0

__version__ = "0.1.0.dev0"
__all__ = [
    "BuildResult",
    "Entry",
    "RenderContext",
    "WatchSession",
    "__version__",
    "build",
    "build_sync",
    "watch",
    "write_entries",
]

_LAZY = {
    "BuildResult": "papyre.pipeline.result",
    "Entry": "papyre.content.entry",
    "RenderContext": "papyre.render.dispatcher",
    "WatchSession": "papyre.pipeline.watch",
    "build": "papyre.pipeline.build",
    "build_sync": "papyre.pipeline.build",
    "watch": "papyre.pipeline.watch",
    "write_entries": "papyre.export.writer",
}


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import papyre`` fast; watchfiles and PyYAML load on first use.
    """
    module_name = _LAZY.get(name)
    if module_name is not None:
        from importlib import import_module

        return getattr(import_module(module_name), name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
