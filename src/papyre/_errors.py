"""Papyre error hierarchy.

All papyre-specific errors inherit from PapyreError for easy catching.
"""


class PapyreError(Exception):
    """Base error for all papyre operations."""


class ConfigError(PapyreError):
    """Invalid or missing configuration."""


class ContentError(PapyreError):
    """Error in content processing (reading, parsing, tree building)."""


class ParseError(ContentError):
    """A content file could not be parsed.

    Attributes:
        path: Path of the offending file, relative to the content root.

    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to parse entry at {path}: {reason}")


class CompileError(PapyreError):
    """Template compilation or artifact evaluation failed.

    The original exception is chained as ``__cause__``.
    """


class RenderError(PapyreError):
    """Rendering of a single entry failed.

    Attributes:
        path: Path of the entry being rendered.

    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"Failed to render entry at path {path}: {message}")


class RenderFunctionMissing(RenderError):
    """An entry names a render function the artifact does not export."""

    def __init__(self, path: str, fn: object, found: object = None) -> None:
        self.fn = fn
        self.found = found
        super().__init__(
            path,
            f"expected to find render function {fn!r}, found {_show(found)}",
        )


class RenderOutputError(RenderError):
    """A render function produced something other than a string."""

    def __init__(self, path: str, fn: str, value: object) -> None:
        self.fn = fn
        self.value = value
        super().__init__(
            path,
            f"expected rendering function {fn!r} to produce a string, "
            f"got {type(value).__name__}",
        )


class ExportError(PapyreError):
    """Error while writing rendered entries to disk."""


def _show(value: object) -> str:
    if value is None:
        return "nothing"
    if callable(value):
        return getattr(value, "__name__", repr(value))
    return repr(value)
