"""Tests for papyre._errors."""

import pytest

from papyre._errors import (
    CompileError,
    ConfigError,
    ContentError,
    ExportError,
    PapyreError,
    ParseError,
    RenderError,
    RenderFunctionMissing,
    RenderOutputError,
)


class TestErrorHierarchy:
    """All papyre errors inherit from PapyreError."""

    def test_papyre_error_is_exception(self) -> None:
        assert issubclass(PapyreError, Exception)

    @pytest.mark.parametrize(
        "error_cls",
        [ConfigError, ContentError, CompileError, RenderError, ExportError],
    )
    def test_inherits_from_base(self, error_cls: type) -> None:
        assert issubclass(error_cls, PapyreError)

    def test_parse_error_is_content_error(self) -> None:
        assert issubclass(ParseError, ContentError)

    def test_render_subclasses(self) -> None:
        assert issubclass(RenderFunctionMissing, RenderError)
        assert issubclass(RenderOutputError, RenderError)


class TestMessages:
    """Error messages name the offending entry."""

    def test_parse_error(self) -> None:
        err = ParseError("docs/a.md", "invalid JSON")
        assert err.path == "docs/a.md"
        assert str(err) == "Failed to parse entry at docs/a.md: invalid JSON"

    def test_render_error(self) -> None:
        err = RenderError("index.md", "boom")
        assert err.path == "index.md"
        assert str(err) == "Failed to render entry at path index.md: boom"

    def test_missing_function_nothing_found(self) -> None:
        err = RenderFunctionMissing("index.md", "html")
        assert "expected to find render function 'html', found nothing" in str(err)
        assert err.fn == "html"
        assert err.found is None

    def test_missing_function_non_callable_found(self) -> None:
        err = RenderFunctionMissing("index.md", "html", 42)
        assert str(err).endswith("found 42")

    def test_output_error(self) -> None:
        err = RenderOutputError("index.md", "html", 42)
        assert err.value == 42
        assert "expected rendering function 'html' to produce a string, got int" in str(err)
