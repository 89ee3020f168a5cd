"""Tests for papyre.config_loader — project file discovery and merging."""

from __future__ import annotations

from pathlib import Path

import pytest

from papyre._errors import ConfigError
from papyre.config_loader import load_config, parse_rename


class TestLoadConfig:
    """load_config — papyre.yaml / papyre.toml merged with overrides."""

    def test_no_project_file(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config.root == tmp_path
        assert config.output == Path("public")

    def test_yaml_top_level(self, tmp_path: Path) -> None:
        (tmp_path / "papyre.yaml").write_text(
            "entry: templates/main.py\noutput: dist\nrename:\n  .md: .html\n"
        )
        config = load_config(tmp_path)
        assert config.entry == Path("templates/main.py")
        assert config.output == Path("dist")
        assert config.rename == {".md": ".html"}

    def test_yaml_papyre_section(self, tmp_path: Path) -> None:
        (tmp_path / "papyre.yml").write_text(
            "papyre:\n  output: site\n  debounce: 25\nunrelated: true\n"
        )
        config = load_config(tmp_path)
        assert config.output == Path("site")
        assert config.compiler == {"debounce": 25}

    def test_toml(self, tmp_path: Path) -> None:
        (tmp_path / "papyre.toml").write_text(
            '[papyre]\noutput = "build"\nrename = [".md=.html"]\n'
        )
        config = load_config(tmp_path)
        assert config.output == Path("build")
        assert config.rename == {".md": ".html"}

    def test_overrides_win(self, tmp_path: Path) -> None:
        (tmp_path / "papyre.yaml").write_text("output: dist\n")
        config = load_config(tmp_path, output="public")
        assert config.output == Path("public")

    def test_none_overrides_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "papyre.yaml").write_text("output: dist\n")
        config = load_config(tmp_path, output=None, entry=None)
        assert config.output == Path("dist")

    def test_compiler_section_merged_with_options(self, tmp_path: Path) -> None:
        (tmp_path / "papyre.yaml").write_text(
            "compiler:\n  optimize: 2\ndebounce: 10\n"
        )
        config = load_config(tmp_path)
        assert config.compiler == {"optimize": 2, "debounce": 10}

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "papyre.yaml").write_text("output: [unclosed\n")
        with pytest.raises(ConfigError, match="Failed to read"):
            load_config(tmp_path)

    def test_malformed_toml(self, tmp_path: Path) -> None:
        (tmp_path / "papyre.toml").write_text("output = \n")
        with pytest.raises(ConfigError, match="Failed to read"):
            load_config(tmp_path)

    def test_non_mapping_file(self, tmp_path: Path) -> None:
        (tmp_path / "papyre.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="expected a mapping"):
            load_config(tmp_path)

    def test_bad_rename(self, tmp_path: Path) -> None:
        (tmp_path / "papyre.yaml").write_text("rename: .md\n")
        with pytest.raises(ConfigError, match="rename"):
            load_config(tmp_path)


class TestParseRename:
    """parse_rename — CLI OLD=NEW pairs."""

    def test_pairs(self) -> None:
        assert parse_rename([".md=.html", ".yml=.json"]) == {
            ".md": ".html",
            ".yml": ".json",
        }

    def test_empty_new_suffix_allowed(self) -> None:
        assert parse_rename([".md="]) == {".md": ""}

    @pytest.mark.parametrize("pair", [".md", "=.html"])
    def test_invalid(self, pair: str) -> None:
        with pytest.raises(ConfigError, match="OLD=NEW"):
            parse_rename([pair])
